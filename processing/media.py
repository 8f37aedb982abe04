"""
Media Rewriter
下载文档中引用的远程图片，并把引用改写为本地路径
"""
from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Dict, List, Optional, Union
from urllib.parse import urljoin, urlparse

import httpx

from config import get_settings
from models import Document
from utils.retry import RetryExecutor


logger = logging.getLogger(__name__)

# HTML <img src="..."> 与 Markdown ![alt](http...) 一次扫描
MEDIA_PATTERN = re.compile(
    r'<img[^>]+src="([^"]+)"[^>]*>|!\[[^\]]*\]\((https?://[^)\s]+)\)'
)
EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,5}$")


def extract_media(body: str) -> List[str]:
    """按首次出现顺序返回去重后的媒体链接"""
    seen = set()
    urls: List[str] = []
    for match in MEDIA_PATTERN.finditer(body or ""):
        url = match.group(1) or match.group(2)
        if url and url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


def media_extension(url: str, default: str = ".png") -> str:
    """取 URL 最后一段路径中的扩展名，没有则使用默认值"""
    last_segment = urlparse(url).path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return default
    ext = last_segment[last_segment.rfind("."):]
    return ext if EXTENSION_PATTERN.match(ext) else default


def replace_media_references(body: str, media_map: Dict[str, str]) -> str:
    """把每个 URL 在 src="..." 或 ](...) 中的所有出现替换为映射值"""
    for original, target in media_map.items():
        if original == target:
            continue
        escaped = re.escape(original)
        pattern = re.compile(rf'(?<=src="){escaped}(?=")|(?<=\]\(){escaped}(?=\))')
        body = pattern.sub(lambda _m, t=target: t, body)
    return body


@dataclass
class RewriteResult:
    document: Document
    media_map: Dict[str, str] = field(default_factory=dict)


class MediaRewriter:
    """
    图片下载与引用改写

    - 每个不同的 URL 只下载一次 (经 RetryExecutor)
    - 成功: 保存为 <序号><扩展名>，引用改写为 relative_prefix/<文件名>
    - 失败: 引用指向原始远程地址，不影响所在题目
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        retry: Optional[RetryExecutor] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        default_extension: Optional[str] = None,
    ):
        settings = get_settings()
        self._client = client
        self._owns_client = client is None
        self.retry = retry or RetryExecutor()
        self.base_url = base_url or settings.catalog.base_url
        self.timeout = timeout if timeout is not None else settings.media.timeout
        self.default_extension = default_extension or settings.media.default_extension

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def absolute_url(self, url: str) -> str:
        if url.startswith("/"):
            return urljoin(self.base_url, url)
        return url

    async def _download(self, url: str, target: Path) -> None:
        client = self._get_client()
        response = await client.get(url, timeout=self.timeout, follow_redirects=True)
        response.raise_for_status()
        target.write_bytes(response.content)

    async def rewrite(
        self,
        document: Document,
        media_dir: Union[str, Path],
        relative_prefix: str = "./images",
    ) -> RewriteResult:
        """
        下载文档中的图片并改写引用

        Args:
            document: 原始文档
            media_dir: 图片保存目录 (有图片时才创建)
            relative_prefix: 改写后引用的相对前缀

        Returns:
            RewriteResult(改写后的文档, 原 URL -> 本地或远程路径)
        """
        urls = document.media or extract_media(document.body)
        if not urls:
            return RewriteResult(document=document)

        media_dir = Path(media_dir)
        media_dir.mkdir(parents=True, exist_ok=True)

        media_map: Dict[str, str] = {}
        index = 0
        for url in urls:
            full_url = self.absolute_url(url)
            filename = f"{index}{media_extension(full_url, self.default_extension)}"
            target = media_dir / filename
            try:
                await self.retry.execute(
                    lambda: self._download(full_url, target),
                    retry_on=(httpx.HTTPError, OSError),
                )
            except (httpx.HTTPError, OSError) as e:
                logger.warning(f"Image download failed, keeping remote link {full_url}: {e}")
                media_map[url] = full_url
                continue

            media_map[url] = f"{relative_prefix}/{filename}"
            index += 1

        body = replace_media_references(document.body, media_map)
        return RewriteResult(
            document=Document(body=body, media=list(urls)),
            media_map=media_map,
        )
