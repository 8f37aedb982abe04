"""
Logger Configuration
统一日志配置: 终端走 RichHandler 与状态行共用 Console，可选追加文件日志
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler


# 全局 Console 实例 (状态行与日志共用)
console = Console()

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

# 相对路径的日志文件放在这里
LOG_DIR = Path.cwd() / "logs"

# 每个请求都会打 INFO 的第三方库
NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


def setup_logger(
    name: str = "",
    verbose: bool = False,
    log_file: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    配置下载器日志

    Args:
        name: 日志记录器名称，默认根记录器，各模块 logging.getLogger(__name__) 即可继承
        verbose: DEBUG 级别，并在终端显示时间与完整 traceback
        log_file: 追加写入的日志文件，相对路径放在 logs/ 下
        quiet: 压到 WARNING 的第三方记录器

    Returns:
        配置好的 Logger 实例
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for noisy in quiet:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    # 重复调用只调整级别
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console_handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=False,
        rich_tracebacks=verbose,
    )
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        if not path.is_absolute():
            path = LOG_DIR / path
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
