"""
Shared fixtures: in-memory catalog, no-sleep retry executor, offline media rewriter.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from models import Answer, Credential, Document, Item, ItemDetail
from processing.media import MediaRewriter
from scrapers.base import BaseCatalogScraper
from utils.exceptions import NoAnswerAvailable, NotFoundError
from utils.retry import RetryExecutor


def make_item(item_id, slug=None, locked=False, difficulty="Easy", tags=("array",)) -> Item:
    return Item(
        id=str(item_id),
        name=f"Problem {item_id}",
        slug=slug or f"problem-{item_id}",
        difficulty=difficulty,
        locked=locked,
        tags=list(tags),
    )


def make_detail(variants=("python3", "cpp"), body="<p>Given an array <code>nums</code>.</p>") -> ItemDetail:
    return ItemDetail(
        document=Document(body=body),
        variants=list(variants),
        templates={v: f"# {v} template\n" for v in variants},
        likes=10,
        dislikes=1,
    )


class FakeCatalogScraper(BaseCatalogScraper):
    """
    内存中的题库

    - detail_errors: slug -> 依次抛出的异常列表 (用尽后正常返回)
    - community: (slug, variant) -> Answer，缺失即 NoAnswerAvailable
    - template_errors / community_errors: (slug, variant) -> 依次抛出的异常列表
    - official_errors: slug -> 依次抛出的异常列表
    - delay: 每次 fetch_detail 前的 sleep，用于观察并发
    """

    def __init__(
        self,
        items: List[Item],
        details: Optional[Dict[str, ItemDetail]] = None,
        community: Optional[Dict[Tuple[str, str], Answer]] = None,
        official: Optional[Dict[str, Answer]] = None,
        detail_errors: Optional[Dict[str, List[BaseException]]] = None,
        template_errors: Optional[Dict[Tuple[str, str], List[BaseException]]] = None,
        community_errors: Optional[Dict[Tuple[str, str], List[BaseException]]] = None,
        official_errors: Optional[Dict[str, List[BaseException]]] = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.items = list(items)
        self.details = details or {}
        self.community = community or {}
        self.official = official or {}
        self.detail_errors = {k: list(v) for k, v in (detail_errors or {}).items()}
        self.template_errors = {k: list(v) for k, v in (template_errors or {}).items()}
        self.community_errors = {k: list(v) for k, v in (community_errors or {}).items()}
        self.official_errors = {k: list(v) for k, v in (official_errors or {}).items()}
        self.delay = delay
        self.detail_calls: List[str] = []
        self.answer_calls: List[Tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "Fake"

    async def list_all(self, credential: Credential):
        for item in self.items:
            yield item

    async def find_item(self, credential: Credential, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == str(item_id):
                return item
        return None

    async def fetch_detail(self, credential: Credential, item: Item) -> ItemDetail:
        self.detail_calls.append(item.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        errors = self.detail_errors.get(item.slug)
        if errors:
            raise errors.pop(0)
        if item.slug in self.details:
            return self.details[item.slug]
        if item.locked and not credential.is_premium:
            raise NotFoundError("Premium problem requires premium account", slug=item.slug)
        return make_detail()

    async def fetch_template(self, credential: Credential, slug: str, variant: str) -> Optional[str]:
        _raise_next(self.template_errors.get((slug, variant)))
        return None

    async def fetch_community_answer(self, credential: Credential, slug: str, variant: str) -> Answer:
        self.answer_calls.append((slug, variant))
        _raise_next(self.community_errors.get((slug, variant)))
        answer = self.community.get((slug, variant))
        if answer is None:
            raise NoAnswerAvailable(slug, variant)
        return answer

    async def fetch_official_answer(self, credential: Credential, slug: str) -> Optional[Answer]:
        _raise_next(self.official_errors.get(slug))
        return self.official.get(slug)


def _raise_next(errors: Optional[List[BaseException]]) -> None:
    if errors:
        raise errors.pop(0)


@pytest.fixture
def credential() -> Credential:
    return Credential(session="session-cookie", csrf="csrf-token", username="tester", is_premium=False)


@pytest.fixture
def premium_credential() -> Credential:
    return Credential(session="session-cookie", csrf="csrf-token", username="tester", is_premium=True)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def retry(sleeps) -> RetryExecutor:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RetryExecutor(max_attempts=3, base_delay=1.0, sleep=fake_sleep)


@pytest.fixture
def image_requests() -> List[str]:
    return []


@pytest.fixture
def media_rewriter(retry, image_requests) -> MediaRewriter:
    """所有图片请求都返回固定字节，路径含 missing 的返回 404"""

    def handler(request: httpx.Request) -> httpx.Response:
        image_requests.append(str(request.url))
        if "missing" in request.url.path:
            return httpx.Response(404)
        return httpx.Response(200, content=b"\x89PNG fake")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MediaRewriter(client=client, retry=retry, base_url="https://leetcode.com")
