"""
Output Renderers
将题面与题解渲染为最终的 HTML / Markdown 页面
"""

from __future__ import annotations

import html as html_lib
from typing import List

from models import Answer, Item, ItemDetail
from .layout import sanitize_folder_name


HTML_STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
            line-height: 1.6;
            max-width: 900px;
            margin: 0 auto;
            padding: 20px;
            color: #333;
        }
        h1 { border-bottom: 1px solid #eee; padding-bottom: 10px; }
        h1 a { color: #333; text-decoration: none; }
        table { border-collapse: collapse; width: 100%; margin: 20px 0; }
        th, td { padding: 8px 12px; text-align: center; border: 1px solid #ddd; }
        th { background-color: #f6f8fa; font-weight: 600; }
        code { background-color: #f6f8fa; padding: 2px 6px; border-radius: 3px; font-size: 0.9em; }
        pre { background-color: #f6f8fa; padding: 16px; border-radius: 6px; overflow-x: auto; }
        pre code { background-color: transparent; padding: 0; white-space: pre-wrap; }
        summary { cursor: pointer; font-weight: 600; }
        hr { border: none; border-top: 1px solid #eee; margin: 30px 0; }
        .links a { margin-right: 20px; color: #0066cc; text-decoration: none; }
        img { max-width: 100%; height: auto; }
"""


def problem_url(base_url: str, item: Item) -> str:
    return f"{base_url.rstrip('/')}/problems/{item.slug}/"


def tag_link(base_url: str, tag: str) -> str:
    return f"{base_url.rstrip('/')}/tag/{sanitize_folder_name(tag).lower()}"


def _details_block(title: str, entries: List[str]) -> str:
    if not entries:
        return ""
    return (
        "<details>\n"
        f"        <summary><strong>{title}</strong></summary>\n"
        f"        <p>{' | '.join(entries)}</p>\n"
        "    </details>"
    )


def render_problem_html(item: Item, detail: ItemDetail, body: str, base_url: str) -> str:
    """完整 HTML 页面: 标题、元信息表、标签、正文、相关链接"""
    url = problem_url(base_url, item)
    title = html_lib.escape(f"{item.id}. {item.name}")
    tags = [f'<a href="{tag_link(base_url, t)}"><code>{html_lib.escape(t)}</code></a>' for t in item.tags]
    companies = [f"<code>{html_lib.escape(c)}</code>" for c in item.companies]

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>{HTML_STYLE}    </style>
</head>
<body>
    <h1><a href="{url}">{title}</a></h1>

    <table>
        <tr><th>Category</th><th>Difficulty</th><th>Likes</th><th>Dislikes</th></tr>
        <tr><td>{html_lib.escape(detail.category_title)}</td><td>{html_lib.escape(item.difficulty)}</td><td>{detail.likes}</td><td>{detail.dislikes}</td></tr>
    </table>

    {_details_block("Tags", tags)}

    {_details_block("Companies", companies)}

    {body}

    <hr>

    <div class="links">
        <a href="{url}submissions/">Submissions</a>
        <a href="{url}solutions/">Solutions</a>
    </div>
</body>
</html>
"""


def render_problem_markdown(item: Item, detail: ItemDetail, body: str, base_url: str) -> str:
    """完整 Markdown 页面"""
    url = problem_url(base_url, item)
    lines = [
        f"# [{item.id}. {item.name}]({url})",
        "",
        "| Category | Difficulty | Likes | Dislikes |",
        "| :------: | :--------: | :---: | :------: |",
        f"| {detail.category_title} | {item.difficulty} | {detail.likes} | {detail.dislikes} |",
        "",
    ]
    if item.tags:
        lines.append("**Tags:** " + ", ".join(f"[`{t}`]({tag_link(base_url, t)})" for t in item.tags))
        lines.append("")
    if item.companies:
        lines.append("**Companies:** " + ", ".join(f"`{c}`" for c in item.companies))
        lines.append("")
    lines.extend([
        "## Description",
        "",
        body,
        "",
        "---",
        "",
        f"**Links:** [Submissions]({url}submissions/) | [Solutions]({url}solutions/)",
        "",
    ])
    return "\n".join(lines)


def render_community_answer_markdown(answer: Answer) -> str:
    return (
        f"# {answer.title or 'Solution'}\n\n"
        f"**Author:** {answer.author or 'unknown'}\n"
        f"**Votes:** {answer.votes}\n"
        f"**Link:** [{answer.url}]({answer.url})\n\n"
        "---\n\n"
        f"{answer.document.body}"
    )


def render_official_answer_markdown(answer: Answer) -> str:
    return (
        "# Official Solution\n\n"
        f"**Link:** [{answer.url}]({answer.url})\n\n"
        "---\n\n"
        f"{answer.document.body}"
    )
