"""
Item Fetcher
单题流水线: 详情 -> 题面转码 (图片本地化) -> 官方题解 -> 各语言模板与社区题解 -> 判定
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from config import get_settings
from models import (
    Credential,
    Document,
    FetchConfig,
    Item,
    ItemDetail,
    ItemResult,
    OutputFormat,
    SubResourceKind,
)
from outputs.layout import ItemLayout
from outputs.renderers import (
    render_community_answer_markdown,
    render_official_answer_markdown,
    render_problem_html,
    render_problem_markdown,
)
from processing.media import MediaRewriter
from processing.transcoder import DocumentTranscoder
from scrapers.base import BaseCatalogScraper
from utils.exceptions import AuthError, FetchError, NoAnswerAvailable, TransientFetchError
from utils.retry import RetryExecutor
from .evaluator import evaluate


logger = logging.getLogger(__name__)

RETRYABLE = (TransientFetchError,)


class ItemFetcher:
    """
    下载单道题的全部内容

    子资源失败只反映在该题的计数里；AuthError 向上传播，
    由调度器终止整个运行。
    """

    def __init__(
        self,
        scraper: BaseCatalogScraper,
        config: FetchConfig,
        output_root: Union[str, Path],
        media: Optional[MediaRewriter] = None,
        retry: Optional[RetryExecutor] = None,
        transcoder: Optional[DocumentTranscoder] = None,
        base_url: Optional[str] = None,
    ):
        self.scraper = scraper
        self.config = config
        self.output_root = Path(output_root)
        self.retry = retry or RetryExecutor()
        self.media = media or MediaRewriter(retry=self.retry)
        self.transcoder = transcoder or DocumentTranscoder()
        self.base_url = base_url or get_settings().catalog.base_url

    def layout_for(self, item: Item) -> ItemLayout:
        return ItemLayout(self.output_root, item)

    async def fetch(self, credential: Credential, item: Item) -> ItemResult:
        """
        执行单题流水线

        Raises:
            AuthError: 会话失效，调用方应终止运行
            NotFoundError / FetchError: 题面获取失败，整题记为失败
        """
        layout = self.layout_for(item)
        layout.ensure()

        detail = await self.retry.execute(
            lambda: self.scraper.fetch_detail(credential, item),
            retry_on=RETRYABLE,
        )
        await self._write_description(layout, item, detail)

        result = ItemResult(item=item, description_ok=True)
        requested = self.config.requested_kinds()

        if SubResourceKind.OFFICIAL_ANSWER in requested:
            await self._official_answer(credential, layout, item, result)

        # 每次运行都按当前详情重新计算总数
        variants = detail.variants
        if SubResourceKind.TEMPLATE in requested:
            result.templates.total = len(variants)
        if SubResourceKind.COMMUNITY_ANSWER in requested:
            result.community_answer.total = len(variants)

        if not variants:
            logger.info(f"[{item.id}] No languages available for this problem")

        for variant in variants:
            if SubResourceKind.TEMPLATE in requested:
                await self._template(credential, layout, item, detail, variant, result)
            if SubResourceKind.COMMUNITY_ANSWER in requested:
                await self._community_answer(credential, layout, item, variant, result)

        result.evaluation = evaluate(
            result.description_ok,
            result.templates,
            result.official_answer,
            result.community_answer,
            requested,
        )
        return result

    async def _write_description(self, layout: ItemLayout, item: Item, detail: ItemDetail) -> None:
        formats = set(self.config.formats)
        document = detail.document
        description_dir = layout.description_dir

        if OutputFormat.RAW in formats:
            (description_dir / OutputFormat.RAW.filename).write_text(
                self.transcoder.to_raw(document), encoding="utf-8"
            )

        if not formats & {OutputFormat.HTML, OutputFormat.MARKDOWN}:
            return

        rewritten = await self.media.rewrite(document, description_dir / "images", "./images")
        media_map = rewritten.media_map

        if OutputFormat.HTML in formats:
            body = self.transcoder.to_structured_markup(document, media_map)
            (description_dir / OutputFormat.HTML.filename).write_text(
                render_problem_html(item, detail, body, self.base_url), encoding="utf-8"
            )

        if OutputFormat.MARKDOWN in formats:
            body = self.transcoder.to_lightweight_markup(document, media_map)
            (description_dir / OutputFormat.MARKDOWN.filename).write_text(
                render_problem_markdown(item, detail, body, self.base_url), encoding="utf-8"
            )

    async def _official_answer(
        self,
        credential: Credential,
        layout: ItemLayout,
        item: Item,
        result: ItemResult,
    ) -> None:
        outcome = result.official_answer
        outcome.total = 1
        try:
            answer = await self.retry.execute(
                lambda: self.scraper.fetch_official_answer(credential, item.slug),
                retry_on=RETRYABLE,
            )
            if answer is None:
                outcome.total = 0
                return

            markdown = render_official_answer_markdown(answer)
            rewritten = await self.media.rewrite(Document(body=markdown), layout.official_dir / "images")
            layout.official_dir.mkdir(parents=True, exist_ok=True)
            (layout.official_dir / "solution.md").write_text(rewritten.document.body, encoding="utf-8")
        except AuthError:
            raise
        except (FetchError, OSError) as e:
            logger.warning(f"[{item.id}] Failed to fetch official solution: {e}")
            return

        outcome.achieved = 1

    async def _template(
        self,
        credential: Credential,
        layout: ItemLayout,
        item: Item,
        detail: ItemDetail,
        variant: str,
        result: ItemResult,
    ) -> None:
        outcome = result.templates
        try:
            code = detail.templates.get(variant)
            if not code:
                code = await self.retry.execute(
                    lambda: self.scraper.fetch_template(credential, item.slug, variant),
                    retry_on=RETRYABLE,
                )
            if not code:
                return
            layout.template_path(variant).write_text(code, encoding="utf-8")
        except AuthError:
            raise
        except (FetchError, OSError) as e:
            logger.warning(f"[{item.id}] Failed to fetch {variant} template: {e}")
            return

        outcome.achieved += 1
        outcome.variants.append(variant)

    async def _community_answer(
        self,
        credential: Credential,
        layout: ItemLayout,
        item: Item,
        variant: str,
        result: ItemResult,
    ) -> None:
        outcome = result.community_answer
        try:
            answer = await self.retry.execute(
                lambda: self.scraper.fetch_community_answer(credential, item.slug, variant),
                retry_on=RETRYABLE,
            )
            markdown = render_community_answer_markdown(answer)
            target_dir = layout.community_dir(variant)
            rewritten = await self.media.rewrite(Document(body=markdown), target_dir / "images")
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / "solution.md").write_text(rewritten.document.body, encoding="utf-8")
        except NoAnswerAvailable:
            outcome.total -= 1
            return
        except AuthError:
            raise
        except (FetchError, OSError) as e:
            logger.warning(f"[{item.id}] Failed to fetch {variant} community solution: {e}")
            return

        outcome.achieved += 1
        outcome.variants.append(variant)
