"""
Unit tests for LeetCodeScraper: error classification, pagination and payload parsing.
"""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp import test_utils

from conftest import make_item
from scrapers import LeetCodeScraper
from utils.exceptions import (
    AuthError,
    FetchError,
    NoAnswerAvailable,
    NotFoundError,
    TransientFetchError,
)


def _question(i, paid=False):
    return {
        "questionFrontendId": str(i),
        "title": f"Problem {i}",
        "titleSlug": f"problem-{i}",
        "difficulty": "Medium",
        "isPaidOnly": paid,
        "topicTags": [{"name": "Hash Table", "slug": "hash-table"}],
        "companyTags": None,
    }


class _ScriptedPost:
    """按顺序返回预设的 data，同时记录变量"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def __call__(self, credential, query, variables, operation_name=None, referer=None):
        self.calls.append(variables)
        return self.responses.pop(0)


async def _serve(status, body=None):
    async def handler(request):
        if body is None:
            return web.Response(status=status)
        return web.json_response(body, status=status)

    app = web.Application()
    app.router.add_post("/graphql", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


class TestErrorClassification:
    """HTTP 状态码到异常类型的映射"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, expected", [
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (429, TransientFetchError),
        (500, TransientFetchError),
        (503, TransientFetchError),
    ])
    async def test_status_mapping(self, credential, status, expected):
        server = await _serve(status)
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                with pytest.raises(expected):
                    await scraper._post(credential, "query { x }", {})
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_other_client_error_is_not_transient(self, credential):
        server = await _serve(400)
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                with pytest.raises(FetchError) as exc_info:
                    await scraper._post(credential, "query { x }", {})
            assert not isinstance(exc_info.value, TransientFetchError)
            assert not isinstance(exc_info.value, AuthError)
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_success_returns_data(self, credential):
        server = await _serve(200, {"data": {"userStatus": {"isSignedIn": True}}})
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                data = await scraper._post(credential, "query { x }", {})
                assert data == {"userStatus": {"isSignedIn": True}}
                assert await scraper.verify_session(credential) is credential
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_missing_credential_is_auth_error(self):
        scraper = LeetCodeScraper()
        with pytest.raises(AuthError):
            await scraper._post(None, "query { x }", {})
        await scraper.close()

    @pytest.mark.asyncio
    async def test_verify_session_refreshes_premium_status(self, credential):
        server = await _serve(200, {"data": {"userStatus": {
            "isSignedIn": True, "isPremium": True, "username": "alice",
        }}})
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                verified = await scraper.verify_session(credential)
            assert verified.is_premium
            assert verified.username == "alice"
            assert verified.session == credential.session
            assert not credential.is_premium
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_verify_session_not_signed_in(self, credential):
        server = await _serve(200, {"data": {"userStatus": {"isSignedIn": False}}})
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                assert await scraper.verify_session(credential) is None
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_verify_session_none_on_rejection(self, credential):
        server = await _serve(403)
        try:
            async with LeetCodeScraper(base_url=str(server.make_url(""))) as scraper:
                assert await scraper.verify_session(credential) is None
        finally:
            await server.close()


class TestCatalogParsing:
    """分页与响应解析"""

    @pytest.mark.asyncio
    async def test_list_all_pages_until_total(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        scraper.page_size = 2
        post = _ScriptedPost([
            {"problemsetQuestionList": {"total": 5, "questions": [_question(1), _question(2)]}},
            {"problemsetQuestionList": {"total": 5, "questions": [_question(3), _question(4, paid=True)]}},
            {"problemsetQuestionList": {"total": 5, "questions": [_question(5)]}},
        ])
        monkeypatch.setattr(scraper, "_post", post)

        items = [item async for item in scraper.list_all(credential)]

        assert [item.id for item in items] == ["1", "2", "3", "4", "5"]
        assert [call["skip"] for call in post.calls] == [0, 2, 4]
        assert items[3].locked
        assert items[0].tags == ["hash-table"]
        assert items[0].companies == []

    @pytest.mark.asyncio
    async def test_list_all_missing_payload_raises(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{}]))

        with pytest.raises(FetchError):
            [item async for item in scraper.list_all(credential)]

    @pytest.mark.asyncio
    async def test_find_item_requires_exact_id(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([
            {"problemsetQuestionList": {"total": 1, "questions": [_question(12)]}},
            {"problemsetQuestionList": {"total": 1, "questions": [_question(120)]}},
        ]))

        assert (await scraper.find_item(credential, "12")).slug == "problem-12"
        assert await scraper.find_item(credential, "12") is None

    @pytest.mark.asyncio
    async def test_fetch_detail_builds_variants(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{"question": {
            "content": '<p>Body <img src="https://x.com/a.png"></p>',
            "codeSnippets": [
                {"langSlug": "python3", "code": "class Solution: pass"},
                {"langSlug": "cpp", "code": "class Solution {};"},
            ],
            "categoryTitle": "Algorithms",
            "likes": 5,
            "dislikes": 2,
        }}]))

        detail = await scraper.fetch_detail(credential, make_item(1))

        assert detail.variants == ["python3", "cpp"]
        assert detail.templates["cpp"] == "class Solution {};"
        assert detail.document.media == ["https://x.com/a.png"]
        assert detail.likes == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("locked, premium, expected", [
        (False, False, AuthError),
        (True, True, AuthError),
        (True, False, NotFoundError),
    ])
    async def test_empty_content_rules(self, credential, premium_credential, monkeypatch, locked, premium, expected):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{"question": {"content": None}}]))

        with pytest.raises(expected):
            await scraper.fetch_detail(premium_credential if premium else credential, make_item(1, locked=locked))

    @pytest.mark.asyncio
    async def test_community_answer_absent(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{"questionSolutions": {"solutions": []}}]))

        with pytest.raises(NoAnswerAvailable):
            await scraper.fetch_community_answer(credential, "two-sum", "rust")

    @pytest.mark.asyncio
    async def test_community_answer_unescaped(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{"questionSolutions": {"solutions": [{
            "id": 99,
            "title": "Hash map",
            "post": {"content": "line1\\nline2 \\\"q\\\"", "voteCount": 7, "author": {"username": "bob"}},
        }]}}]))

        answer = await scraper.fetch_community_answer(credential, "two-sum", "python3")

        assert answer.document.body == 'line1\nline2 "q"'
        assert answer.author == "bob"
        assert answer.votes == 7
        assert answer.url == "https://leetcode.com/problems/two-sum/solutions/99/"

    @pytest.mark.asyncio
    async def test_official_answer_absent_returns_none(self, credential, monkeypatch):
        scraper = LeetCodeScraper()
        monkeypatch.setattr(scraper, "_post", _ScriptedPost([{"question": {"solution": None}}]))

        assert await scraper.fetch_official_answer(credential, "two-sum") is None
