"""
Outputs Module
输出层 - 目录结构、页面渲染与导出
"""

from .layout import ItemLayout, item_folder_name, sanitize_folder_name
from .renderers import (
    problem_url,
    render_problem_html,
    render_problem_markdown,
    render_community_answer_markdown,
    render_official_answer_markdown,
)
from .exporter import (
    DownloadedProblem,
    ExportConfig,
    ExportSummary,
    build_export_config,
    scan_downloads,
    export_problem,
    export_downloads,
    format_bytes,
)

__all__ = [
    # Layout
    "ItemLayout",
    "item_folder_name",
    "sanitize_folder_name",
    # Renderers
    "problem_url",
    "render_problem_html",
    "render_problem_markdown",
    "render_community_answer_markdown",
    "render_official_answer_markdown",
    # Export
    "DownloadedProblem",
    "ExportConfig",
    "ExportSummary",
    "build_export_config",
    "scan_downloads",
    "export_problem",
    "export_downloads",
    "format_bytes",
]
