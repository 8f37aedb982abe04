"""
Tests for media extraction and MediaRewriter
"""
import pytest

from models import Document
from processing.media import extract_media, media_extension, replace_media_references


class TestExtractMedia:
    """媒体链接提取测试"""

    def test_html_and_markdown_in_order(self):
        body = (
            '<p><img alt="a" src="https://assets.leetcode.com/a.jpg" /></p>'
            "![diagram](https://example.com/b.gif)"
        )
        assert extract_media(body) == [
            "https://assets.leetcode.com/a.jpg",
            "https://example.com/b.gif",
        ]

    def test_duplicates_collapse(self):
        body = '<img src="https://x.com/a.png"><img src="https://x.com/a.png">'
        assert extract_media(body) == ["https://x.com/a.png"]

    def test_markdown_requires_absolute_url(self):
        assert extract_media("![local](./images/0.png)") == []

    def test_empty_body(self):
        assert extract_media("") == []


class TestMediaExtension:
    """扩展名推断测试"""

    @pytest.mark.parametrize("url, expected", [
        ("https://x.com/pic.jpeg", ".jpeg"),
        ("https://x.com/pic.PNG?size=large", ".PNG"),
        ("https://x.com/images/pic", ".png"),
        ("https://x.com/pic.toolongext", ".png"),
        ("https://x.com/dir.v2/pic", ".png"),
    ])
    def test_extension_rules(self, url, expected):
        assert media_extension(url) == expected

    def test_custom_default(self):
        assert media_extension("https://x.com/pic", default=".gif") == ".gif"


class TestReplaceMediaReferences:
    """引用替换测试"""

    def test_only_reference_contexts_are_replaced(self):
        body = (
            '<img src="https://x.com/a.png"> see https://x.com/a.png '
            "![a](https://x.com/a.png)"
        )
        result = replace_media_references(body, {"https://x.com/a.png": "./images/0.png"})
        assert result == '<img src="./images/0.png"> see https://x.com/a.png ![a](./images/0.png)'

    def test_prefix_url_is_not_clobbered(self):
        body = '<img src="https://x.com/a.png"><img src="https://x.com/a.png.bak">'
        result = replace_media_references(body, {"https://x.com/a.png": "./images/0.png"})
        assert result == '<img src="./images/0.png"><img src="https://x.com/a.png.bak">'


class TestMediaRewriter:
    """图片下载与改写测试"""

    @pytest.mark.asyncio
    async def test_duplicate_url_downloaded_once(self, media_rewriter, image_requests, tmp_path):
        body = (
            '<img src="https://x.com/a.png"><p>text</p>'
            '<img src="https://x.com/a.png">'
        )
        result = await media_rewriter.rewrite(Document(body=body), tmp_path / "images")

        assert image_requests == ["https://x.com/a.png"]
        assert result.media_map == {"https://x.com/a.png": "./images/0.png"}
        assert result.document.body.count('src="./images/0.png"') == 2
        assert (tmp_path / "images" / "0.png").read_bytes() == b"\x89PNG fake"

    @pytest.mark.asyncio
    async def test_failed_download_keeps_remote_link(self, media_rewriter, image_requests, sleeps, tmp_path):
        body = (
            '<img src="https://x.com/missing.png">'
            '<img src="https://x.com/ok.jpg">'
        )
        result = await media_rewriter.rewrite(Document(body=body), tmp_path / "images")

        # 失败的图片按重试次数请求，成功的图片占用序号 0
        assert image_requests.count("https://x.com/missing.png") == 3
        assert sleeps == [1.0, 2.0]
        assert result.media_map == {
            "https://x.com/missing.png": "https://x.com/missing.png",
            "https://x.com/ok.jpg": "./images/0.jpg",
        }
        assert not (tmp_path / "images" / "0.png").exists()
        assert (tmp_path / "images" / "0.jpg").exists()

    @pytest.mark.asyncio
    async def test_relative_url_resolved_against_base(self, media_rewriter, image_requests, tmp_path):
        body = '<img src="/static/diagram.svg">'
        result = await media_rewriter.rewrite(Document(body=body), tmp_path / "images", "./img")

        assert image_requests == ["https://leetcode.com/static/diagram.svg"]
        assert result.document.body == '<img src="./img/0.svg">'

    @pytest.mark.asyncio
    async def test_no_media_creates_no_directory(self, media_rewriter, image_requests, tmp_path):
        document = Document(body="<p>plain</p>")
        result = await media_rewriter.rewrite(document, tmp_path / "images")

        assert result.document.body == "<p>plain</p>"
        assert result.media_map == {}
        assert image_requests == []
        assert not (tmp_path / "images").exists()
