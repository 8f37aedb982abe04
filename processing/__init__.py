"""
Processing Module
文档处理模块 - 图片本地化、格式转换
"""
from .media import (
    MediaRewriter,
    RewriteResult,
    extract_media,
    media_extension,
    replace_media_references,
)
from .transcoder import (
    DocumentTranscoder,
    MarkdownRenderer,
    decode_entities,
    html_to_markdown,
    parse_html,
)

__all__ = [
    # Media
    "MediaRewriter",
    "RewriteResult",
    "extract_media",
    "media_extension",
    "replace_media_references",
    # Transcoder
    "DocumentTranscoder",
    "MarkdownRenderer",
    "decode_entities",
    "html_to_markdown",
    "parse_html",
]
