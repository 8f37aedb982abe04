"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class CatalogSettings(BaseSettings):
    """LeetCode GraphQL 目录配置"""
    base_url: str = Field(default="https://leetcode.com", description="站点根地址")
    page_size: int = Field(default=100, description="列表分页大小")
    request_timeout: int = Field(default=30, description="请求超时时间(秒)")
    user_agent: str = Field(default="leetcode-fetch/1.0", description="User Agent")

    class Config:
        env_prefix = "LEETCODE_"


class MediaSettings(BaseSettings):
    """图片下载配置"""
    timeout: float = Field(default=10.0, description="单张图片下载超时(秒)")
    default_extension: str = Field(default=".png", description="无扩展名时使用的后缀")

    class Config:
        env_prefix = "MEDIA_"


class RetrySettings(BaseSettings):
    """重试配置"""
    max_attempts: int = Field(default=3, description="最大尝试次数")
    base_delay: float = Field(default=1.0, description="线性退避基准延迟(秒)")

    class Config:
        env_prefix = "RETRY_"


class DownloadSettings(BaseSettings):
    """下载输出配置"""
    output_dir: str = Field(default="downloads", description="下载根目录")
    progress_file: str = Field(default=".download-progress.json", description="进度文件名")
    concurrency: int = Field(default=5, description="默认并发数")

    class Config:
        env_prefix = "DOWNLOAD_"


class SessionSettings(BaseSettings):
    """登录会话配置"""
    file: str = Field(
        default=str(Path.home() / ".lc" / "leetcode" / "user.json"),
        description="会话文件路径",
    )

    class Config:
        env_prefix = "SESSION_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            catalog=CatalogSettings(),
            media=MediaSettings(),
            retry=RetrySettings(),
            download=DownloadSettings(),
            session=SessionSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_retry_settings() -> RetrySettings:
    return get_settings().retry
