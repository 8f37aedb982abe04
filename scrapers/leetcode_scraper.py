"""
LeetCode Scraper
LeetCode GraphQL 题库适配器
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from .base import BaseCatalogScraper
from models import Answer, Credential, Document, Item, ItemDetail
from processing.media import extract_media
from utils.exceptions import (
    AuthError,
    FetchError,
    NoAnswerAvailable,
    NotFoundError,
    TransientFetchError,
)


logger = logging.getLogger(__name__)


LIST_QUERY = """
query problemsetQuestionList($categorySlug: String, $limit: Int, $skip: Int, $filters: QuestionListFilterInput) {
    problemsetQuestionList: questionList(
        categorySlug: $categorySlug
        limit: $limit
        skip: $skip
        filters: $filters
    ) {
        total: totalNum
        questions: data {
            questionFrontendId
            title
            titleSlug
            difficulty
            isPaidOnly
            topicTags { name slug }
            companyTags { name slug }
        }
    }
}
"""

DETAIL_QUERY = """
query questionContent($titleSlug: String!) {
    question(titleSlug: $titleSlug) {
        questionFrontendId
        title
        titleSlug
        content
        difficulty
        likes
        dislikes
        categoryTitle
        codeSnippets { lang langSlug code }
    }
}
"""

EDITOR_QUERY = """
query questionEditorData($titleSlug: String!) {
    question(titleSlug: $titleSlug) {
        codeSnippets { lang langSlug code }
    }
}
"""

COMMUNITY_QUERY = """
query communitySolutions($questionSlug: String!, $skip: Int!, $first: Int!, $query: String, $orderBy: TopicSortingOption, $languageTags: [String!], $topicTags: [String!]) {
    questionSolutions(
        filters: {
            questionSlug: $questionSlug
            skip: $skip
            first: $first
            query: $query
            orderBy: $orderBy
            languageTags: $languageTags
            topicTags: $topicTags
        }
    ) {
        solutions {
            id
            title
            post {
                id
                content
                voteCount
                author { username }
            }
        }
    }
}
"""

OFFICIAL_QUERY = """
query questionSolution($titleSlug: String!) {
    question(titleSlug: $titleSlug) {
        solution {
            id
            content
            canSeeDetail
            paidOnly
        }
    }
}
"""

USER_STATUS_QUERY = """
query globalData {
    userStatus {
        isSignedIn
        isPremium
        username
    }
}
"""


def unescape_post_content(content: str) -> str:
    """社区题解内容中的转义序列还原"""
    return (
        (content or "")
        .replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\'", "'")
        .replace('\\"', '"')
    )


class LeetCodeScraper(BaseCatalogScraper):
    """
    LeetCode 抓取器

    特性:
    - 题库分页列表 (每页 100)
    - 题目详情 / 代码模板 / 社区题解 / 官方题解
    - 错误分类: 401/403 -> AuthError, 404 -> NotFoundError,
      429/5xx/网络错误 -> TransientFetchError
    """

    def __init__(self, base_url: Optional[str] = None):
        super().__init__()
        catalog = self.settings.catalog
        self.base_url = (base_url or catalog.base_url).rstrip("/")
        self.page_size = catalog.page_size
        self._timeout = catalog.request_timeout
        self._user_agent = catalog.user_agent

    @property
    def name(self) -> str:
        return "LeetCode"

    @property
    def graphql_url(self) -> str:
        return f"{self.base_url}/graphql"

    async def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 HTTP 会话"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    def _build_headers(self, credential: Credential, referer: str) -> Dict[str, str]:
        return {
            "Cookie": f"LEETCODE_SESSION={credential.session};csrftoken={credential.csrf};",
            "X-CSRFToken": credential.csrf,
            "Content-Type": "application/json",
            "Origin": self.base_url,
            "Referer": referer,
            "User-Agent": self._user_agent,
        }

    async def _post(
        self,
        credential: Optional[Credential],
        query: str,
        variables: Dict[str, Any],
        operation_name: Optional[str] = None,
        referer: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        发送 GraphQL 请求并分类错误

        Returns:
            响应中的 data 字段
        """
        if credential is None:
            raise AuthError("No session cookies found. Please login first.")

        payload: Dict[str, Any] = {"query": query, "variables": variables}
        if operation_name:
            payload["operationName"] = operation_name

        session = await self._get_session()
        headers = self._build_headers(credential, referer or f"{self.base_url}/problemset/")

        try:
            async with session.post(self.graphql_url, json=payload, headers=headers) as response:
                status = response.status
                if status in (401, 403):
                    raise AuthError(
                        f"LeetCode rejected the session (HTTP {status})",
                        {"operation": operation_name},
                    )
                if status == 404:
                    raise NotFoundError(f"LeetCode returned 404 for {operation_name or 'query'}")
                if status == 429 or status >= 500:
                    raise TransientFetchError(f"LeetCode returned HTTP {status}", source=self.name)
                if status >= 400:
                    raise FetchError(f"LeetCode API request failed: HTTP {status}")

                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFetchError(f"LeetCode API request failed: {e}", source=self.name) from e

        if not isinstance(body, dict):
            raise TransientFetchError("LeetCode returned a non-JSON response", source=self.name)
        return body.get("data") or {}

    async def list_all(self, credential: Credential) -> AsyncIterator[Item]:
        """分页遍历整个题库，直到达到服务端报告的 total"""
        skip = 0
        total = 0
        while True:
            data = await self._post(credential, LIST_QUERY, {
                "categorySlug": "",
                "limit": self.page_size,
                "skip": skip,
                "filters": {},
            })
            result = data.get("problemsetQuestionList")
            if not result:
                raise FetchError("Failed to fetch problems list")

            total = int(result.get("total") or 0)
            for question in result.get("questions") or []:
                yield self._convert_to_item(question)

            skip += self.page_size
            if skip >= total:
                break

    async def find_item(self, credential: Credential, item_id: str) -> Optional[Item]:
        data = await self._post(credential, LIST_QUERY, {
            "categorySlug": "",
            "limit": 1,
            "skip": 0,
            "filters": {"searchKeywords": str(item_id)},
        })
        result = data.get("problemsetQuestionList") or {}
        questions = result.get("questions") or []
        if not questions:
            return None
        item = self._convert_to_item(questions[0])
        # searchKeywords 是模糊匹配
        if item.id != str(item_id):
            return None
        return item

    async def fetch_detail(self, credential: Credential, item: Item) -> ItemDetail:
        data = await self._post(
            credential,
            DETAIL_QUERY,
            {"titleSlug": item.slug},
            referer=f"{self.base_url}/problems/{item.slug}/",
        )
        question = data.get("question")
        if not question:
            raise NotFoundError(f"Failed to fetch problem: {item.slug}", slug=item.slug)

        content = question.get("content") or ""
        if not content:
            # 有凭证却拿到空正文: 会话已静默失效
            if item.locked and credential.is_premium:
                raise AuthError("Download premium content failed. Session may have expired.")
            if item.locked:
                raise NotFoundError("Premium problem requires premium account", slug=item.slug)
            raise AuthError("Download failed. Session may have expired.")

        snippets = question.get("codeSnippets") or []
        variants = []
        templates = {}
        for snippet in snippets:
            lang = snippet.get("langSlug")
            if not lang or lang in templates:
                continue
            variants.append(lang)
            templates[lang] = snippet.get("code") or ""

        return ItemDetail(
            document=Document(body=content, media=extract_media(content)),
            variants=variants,
            templates=templates,
            category_title=question.get("categoryTitle") or "Algorithms",
            likes=int(question.get("likes") or 0),
            dislikes=int(question.get("dislikes") or 0),
        )

    async def fetch_template(self, credential: Credential, slug: str, variant: str) -> Optional[str]:
        data = await self._post(
            credential,
            EDITOR_QUERY,
            {"titleSlug": slug},
            operation_name="questionEditorData",
            referer=f"{self.base_url}/problems/{slug}/",
        )
        question = data.get("question") or {}
        for snippet in question.get("codeSnippets") or []:
            if snippet.get("langSlug") == variant and snippet.get("code"):
                return snippet["code"]
        return None

    async def fetch_community_answer(self, credential: Credential, slug: str, variant: str) -> Answer:
        data = await self._post(
            credential,
            COMMUNITY_QUERY,
            {
                "questionSlug": slug,
                "skip": 0,
                "first": 1,
                "orderBy": "most_votes",
                "query": "",
                "languageTags": [variant],
                "topicTags": [],
            },
            operation_name="communitySolutions",
            referer=f"{self.base_url}/problems/{slug}/solutions/",
        )
        solutions = (data.get("questionSolutions") or {}).get("solutions") or []
        if not solutions:
            raise NoAnswerAvailable(slug, variant)

        solution = solutions[0]
        post = solution.get("post") or {}
        content = unescape_post_content(post.get("content") or "")
        return Answer(
            document=Document(body=content, media=extract_media(content)),
            title=solution.get("title") or "Solution",
            author=(post.get("author") or {}).get("username") or "unknown",
            votes=int(post.get("voteCount") or 0),
            url=f"{self.base_url}/problems/{slug}/solutions/{solution.get('id')}/",
        )

    async def fetch_official_answer(self, credential: Credential, slug: str) -> Optional[Answer]:
        data = await self._post(
            credential,
            OFFICIAL_QUERY,
            {"titleSlug": slug},
            operation_name="questionSolution",
            referer=f"{self.base_url}/problems/{slug}/",
        )
        solution = (data.get("question") or {}).get("solution")
        if not solution or not solution.get("content"):
            return None

        content = solution["content"]
        return Answer(
            document=Document(body=content, media=extract_media(content)),
            title="Official Solution",
            url=f"{self.base_url}/problems/{slug}/solution/",
        )

    async def verify_session(self, credential: Credential) -> Optional[Credential]:
        try:
            data = await self._post(credential, USER_STATUS_QUERY, {})
        except FetchError as e:
            self._log_error("Session verification failed", e)
            return None
        status = data.get("userStatus") or {}
        if status.get("isSignedIn") is not True:
            return None

        # 会员状态以服务端为准
        update: Dict[str, Any] = {}
        if status.get("isPremium") is not None:
            update["is_premium"] = bool(status["isPremium"])
        if status.get("username"):
            update["username"] = status["username"]
        return credential.model_copy(update=update) if update else credential

    def _convert_to_item(self, data: Dict[str, Any]) -> Item:
        """转换 API 响应为 Item 模型"""
        return Item(
            id=str(data.get("questionFrontendId")),
            name=data.get("title") or "",
            slug=data.get("titleSlug") or "",
            difficulty=data.get("difficulty") or "Unknown",
            locked=bool(data.get("isPaidOnly")),
            tags=[t.get("slug") for t in (data.get("topicTags") or []) if t.get("slug")],
            companies=[c.get("slug") for c in (data.get("companyTags") or []) if c.get("slug")],
        )
