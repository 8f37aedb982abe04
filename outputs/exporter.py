"""
Output Exporter
按语言 / 格式筛选，把已下载的题目导出到新目录
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
from pathlib import Path
import shutil
from typing import Dict, List, Optional, Union

from models import LANGUAGE_EXTENSIONS, OutputFormat
from utils.exceptions import ConfigurationError
from .layout import FOLDER_NAME_PATTERN


logger = logging.getLogger(__name__)

_EXTENSION_TO_LANGUAGE: Dict[str, str] = {ext: lang for lang, ext in LANGUAGE_EXTENSIONS.items()}


@dataclass
class DownloadedProblem:
    """下载目录中的一道题"""
    id: str
    difficulty: str
    slug: str
    category: str
    path: Path
    folder: str
    available_languages: List[str] = field(default_factory=list)


@dataclass
class ExportConfig:
    output: Path
    source_dir: Path = Path("downloads")
    languages: Optional[List[str]] = None
    format: OutputFormat = OutputFormat.MARKDOWN
    include_official: bool = False


@dataclass
class ExportSummary:
    total_problems: int = 0
    total_files: int = 0
    total_bytes: int = 0
    categories: Counter = field(default_factory=Counter)
    failures: Dict[str, str] = field(default_factory=dict)


def build_export_config(
    output: Union[str, Path, None],
    source_dir: Union[str, Path] = "downloads",
    languages: Optional[List[str]] = None,
    fmt: str = "md",
    include_official: bool = False,
) -> ExportConfig:
    """
    校验并构造导出配置

    Raises:
        ConfigurationError: 输出目录缺失、源目录不存在、格式或语言非法
    """
    if not output:
        raise ConfigurationError("Output folder is required. Use -o or --output to specify destination.")

    source = Path(source_dir)
    if not source.exists():
        raise ConfigurationError(
            f"Source directory not found: {source}. Please check the path or run download first."
        )

    try:
        output_format = OutputFormat(str(fmt).strip().lower())
    except ValueError:
        valid = ", ".join(f.value for f in OutputFormat)
        raise ConfigurationError(f"Invalid format: {fmt}. Valid formats: {valid}") from None

    if languages:
        languages = [lang.strip().lower() for lang in languages if lang.strip()]
        invalid = [lang for lang in languages if lang not in LANGUAGE_EXTENSIONS]
        if invalid:
            raise ConfigurationError(
                f"Invalid language(s): {', '.join(invalid)}",
                {"available": sorted(LANGUAGE_EXTENSIONS)},
            )

    output_path = Path(output)
    output_path.mkdir(parents=True, exist_ok=True)
    return ExportConfig(
        output=output_path,
        source_dir=source,
        languages=languages or None,
        format=output_format,
        include_official=include_official,
    )


def scan_downloads(source_dir: Union[str, Path]) -> List[DownloadedProblem]:
    """扫描下载目录，识别每道题已有的语言"""
    source = Path(source_dir)
    problems: List[DownloadedProblem] = []

    for category_path in sorted(source.iterdir()):
        if not category_path.is_dir() or category_path.name.startswith("."):
            continue

        for problem_path in sorted(category_path.iterdir()):
            match = FOLDER_NAME_PATTERN.match(problem_path.name)
            if not problem_path.is_dir() or not match:
                continue

            problem_id, difficulty, slug = match.groups()
            languages = []
            templates = problem_path / "templates"
            if templates.exists():
                for template in sorted(templates.glob("solution.*")):
                    lang = _EXTENSION_TO_LANGUAGE.get(template.name[len("solution."):])
                    if lang:
                        languages.append(lang)

            problems.append(DownloadedProblem(
                id=problem_id,
                difficulty=difficulty,
                slug=slug,
                category=category_path.name,
                path=problem_path,
                folder=problem_path.name,
                available_languages=languages,
            ))

    return problems


def _copy_file(src: Path, dest: Path) -> int:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return src.stat().st_size


def _copy_tree(src: Path, dest: Path) -> tuple:
    """复制目录，返回 (文件数, 字节数)"""
    shutil.copytree(src, dest, dirs_exist_ok=True)
    files = [p for p in src.rglob("*") if p.is_file()]
    return len(files), sum(p.stat().st_size for p in files)


def export_problem(problem: DownloadedProblem, config: ExportConfig) -> tuple:
    """
    导出单题

    Returns:
        (文件数, 字节数)
    """
    files = 0
    size = 0
    dest = config.output / problem.category / problem.folder

    description = problem.path / "description" / config.format.filename
    if description.exists():
        size += _copy_file(description, dest / "description" / config.format.filename)
        files += 1

    images = problem.path / "description" / "images"
    if images.exists():
        count, nbytes = _copy_tree(images, dest / "description" / "images")
        files += count
        size += nbytes

    for lang in config.languages or problem.available_languages:
        if lang not in problem.available_languages:
            continue

        template = problem.path / "templates" / f"solution.{LANGUAGE_EXTENSIONS[lang]}"
        if template.exists():
            size += _copy_file(template, dest / "templates" / template.name)
            files += 1

        community = problem.path / "solutions" / "community" / lang
        if community.exists():
            count, nbytes = _copy_tree(community, dest / "solutions" / "community" / lang)
            files += count
            size += nbytes

    if config.include_official:
        official = problem.path / "solutions" / "official"
        if official.exists():
            count, nbytes = _copy_tree(official, dest / "solutions" / "official")
            files += count
            size += nbytes

    return files, size


def export_downloads(config: ExportConfig) -> ExportSummary:
    """导出全部题目，单题失败只记录不中断"""
    summary = ExportSummary()
    problems = scan_downloads(config.source_dir)
    logger.info(f"Found {len(problems)} problems in {config.source_dir}")

    for problem in problems:
        try:
            files, size = export_problem(problem, config)
        except OSError as e:
            logger.warning(f"Failed to export {problem.folder}: {e}")
            summary.failures[problem.folder] = str(e)
            continue

        summary.total_problems += 1
        summary.total_files += files
        summary.total_bytes += size
        summary.categories[problem.category] += 1

    return summary


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {units[unit]}"
