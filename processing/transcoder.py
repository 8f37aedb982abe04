"""
Document Transcoder
题面 HTML -> Markdown / HTML / 原文

Markdown 转换分两阶段:
1. <pre> 代码块先抽取为占位符，保证代码内容不被后续处理改写
2. 其余部分用 BeautifulSoup 解析，按节点类型分别渲染；
   未识别的标签直接渲染其子节点 (即剥离标签)
"""
from __future__ import annotations

import html
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, NavigableString, PageElement, Tag

from models import Document
from .media import replace_media_references


PRE_BLOCK_PATTERN = re.compile(
    r"<pre[^>]*>\s*<code[^>]*>([\s\S]*?)</code>\s*</pre>|<pre[^>]*>([\s\S]*?)</pre>",
    re.IGNORECASE,
)
PRE_WITHOUT_CODE_PATTERN = re.compile(r"<pre>(?!\s*<code)[\r\n]*([\s\S]+?)[\r\n]*</pre>")
TAG_PATTERN = re.compile(r"<[^>]+>")
MULTIPLE_NEWLINES = re.compile(r"\n{3,}")
PLACEHOLDER = "@@PRE_BLOCK_{}@@"

# 与 html.unescape 不同: 比较运算符解码为 ASCII 形式
ENTITY_MAP: Dict[str, str] = {
    "nbsp": " ",
    "lt": "<",
    "gt": ">",
    "le": "<=",
    "ge": ">=",
    "amp": "&",
    "quot": '"',
    "apos": "'",
    "times": "×",
    "divide": "÷",
}

HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}


def decode_entities(text: str) -> str:
    """解码命名/数字字符引用"""
    def _replace(match: re.Match) -> str:
        return _decode_reference(match.group(1)) or match.group(0)

    return re.sub(r"&(#?[A-Za-z0-9]+);", _replace, text)


def _decode_reference(name: str) -> Optional[str]:
    if name.startswith("#"):
        try:
            if name[1:2] in ("x", "X"):
                return chr(int(name[2:], 16))
            return chr(int(name[1:]))
        except (ValueError, OverflowError):
            return None
    if name in ENTITY_MAP:
        return ENTITY_MAP[name]
    decoded = html.unescape(f"&{name};")
    return None if decoded == f"&{name};" else decoded


# bs4 按 html.unescape 解码，比较运算符与不换行空格再转成 ASCII 形式
TEXT_TRANSLATION = str.maketrans({"≤": "<=", "≥": ">=", "\xa0": " "})


def parse_html(fragment: str) -> BeautifulSoup:
    """解析 HTML 片段，容忍未闭合标签，字符引用在解析时解码"""
    return BeautifulSoup(fragment, "html.parser")


class MarkdownRenderer:
    """按节点类型渲染 Markdown"""

    def render(self, node: Tag) -> str:
        return self._children(node)

    def _children(self, node: Tag) -> str:
        return "".join(self._node(child) for child in node.children)

    def _node(self, node: PageElement) -> str:
        if isinstance(node, (Comment, Doctype)):
            return ""
        if isinstance(node, NavigableString):
            return str(node).translate(TEXT_TRANSLATION)
        if not isinstance(node, Tag):
            return ""

        tag = node.name
        if tag in HEADING_TAGS:
            return f"\n{'#' * HEADING_TAGS[tag]} {self._children(node).strip()}\n\n"
        if tag == "p":
            return f"\n{self._children(node)}\n"
        if tag == "br":
            return "\n"
        if tag == "hr":
            return "\n\n---\n\n"
        if tag in ("strong", "b"):
            return self._wrap(self._children(node), "**")
        if tag in ("em", "i"):
            return self._wrap(self._children(node), "*")
        if tag == "code":
            return f"`{self._code_text(node)}`"
        if tag in ("ul", "ol"):
            return self._list(node, depth=0)
        if tag == "a":
            text = self._children(node).strip()
            href = node.get("href", "")
            if not href or not text:
                return text
            return f"[{text}]({href})"
        if tag == "img":
            return f"![image]({node.get('src', '')})"
        if tag == "sup":
            return f"^{self._children(node)}"
        if tag == "sub":
            return f"_{self._children(node)}"
        if tag in ("script", "style"):
            return ""
        return self._children(node)

    @staticmethod
    def _wrap(text: str, marker: str) -> str:
        if not text.strip():
            return text
        # 标记必须紧贴内容
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]
        return f"{leading}{marker}{text.strip()}{marker}{trailing}"

    def _code_text(self, node: Tag) -> str:
        parts = []
        for child in node.children:
            if isinstance(child, (Comment, Doctype)):
                continue
            if isinstance(child, NavigableString):
                parts.append(str(child).translate(TEXT_TRANSLATION))
            elif child.name == "sup":
                parts.append(f"^{self._code_text(child)}")
            elif child.name == "sub":
                parts.append(f"_{self._code_text(child)}")
            elif isinstance(child, Tag):
                parts.append(self._code_text(child))
        return "".join(parts)

    def _list(self, node: Tag, depth: int) -> str:
        lines = []
        index = 1
        indent = "  " * depth
        for child in node.find_all("li", recursive=False):
            bullet = f"{index}." if node.name == "ol" else "-"
            index += 1

            inline_parts = []
            nested = []
            for part in child.children:
                if isinstance(part, Tag) and part.name in ("ul", "ol"):
                    nested.append(self._list(part, depth + 1))
                else:
                    inline_parts.append(self._node(part))
            text = " ".join("".join(inline_parts).split("\n")).strip()
            text = re.sub(r" {2,}", " ", text)
            lines.append(f"{indent}{bullet} {text}\n")
            lines.extend(nested)
        body = "".join(lines)
        return f"\n{body}\n" if depth == 0 else body


class DocumentTranscoder:
    """
    文档转码器

    - to_lightweight_markup: Markdown
    - to_structured_markup: HTML，仅改写图片并规范 <pre>
    - to_raw: 原文
    """

    def __init__(self):
        self._renderer = MarkdownRenderer()

    def to_raw(self, document: Document) -> str:
        return document.body

    def to_structured_markup(self, document: Document, media_map: Optional[Dict[str, str]] = None) -> str:
        body = replace_media_references(document.body, media_map or {})
        return PRE_WITHOUT_CODE_PATTERN.sub(r"<pre><code>\1</code></pre>", body)

    def to_lightweight_markup(self, document: Document, media_map: Optional[Dict[str, str]] = None) -> str:
        # 1. 抽取代码块
        blocks: List[str] = []

        def _extract(match: re.Match) -> str:
            content = match.group(1) if match.group(1) is not None else match.group(2)
            content = TAG_PATTERN.sub("", content)
            content = decode_entities(content).strip("\r\n")
            blocks.append(f"```\n{content}\n```")
            return f"\n\n{PLACEHOLDER.format(len(blocks) - 1)}\n\n"

        text = PRE_BLOCK_PATTERN.sub(_extract, document.body or "")

        # 2. 图片引用
        text = replace_media_references(text, media_map or {})

        # 3-5. 节点树渲染 (实体解码、剥离未知标签在解析/渲染中完成)
        markdown = self._renderer.render(parse_html(text))

        # 6. 压缩空行
        markdown = MULTIPLE_NEWLINES.sub("\n\n", markdown).strip()

        # 7. 回填代码块
        for index, block in enumerate(blocks):
            markdown = markdown.replace(PLACEHOLDER.format(index), block, 1)

        return markdown


_default_transcoder = DocumentTranscoder()


def html_to_markdown(body: str, media_map: Optional[Dict[str, str]] = None) -> str:
    """便捷函数: HTML 字符串直接转 Markdown"""
    return _default_transcoder.to_lightweight_markup(Document(body=body), media_map)
