"""
Download Scheduler
按固定大小的分块并发处理题目，支持断点续传与会话失效终止
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from models import Credential, FetchConfig, Item, ItemResult, ItemStatus, RunSummary
from scrapers.base import BaseCatalogScraper
from storage import ProgressStore
from utils.exceptions import AuthError, StorageError
from utils.logger import console as default_console
from .worker import ItemFetcher


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DownloadScheduler:
    """
    调度器

    - 无权限的锁定题目在派发前过滤 (skipped)
    - 已在 completed 中的题目直接跳过 (already done)
    - 每个分块最多 concurrency 个并发，分块之间串行
    - 任一题目抛出 AuthError 后不再派发新的分块，当前分块内其他题目照常完成并落盘
    - 进度文件写入失败 (StorageError) 同样终止后续分块，仍会打印汇总
    """

    def __init__(
        self,
        scraper: BaseCatalogScraper,
        fetcher: ItemFetcher,
        store: ProgressStore,
        config: FetchConfig,
        console: Optional[Console] = None,
    ):
        self.scraper = scraper
        self.fetcher = fetcher
        self.store = store
        self.config = config
        self.console = console or default_console

        self._abort = asyncio.Event()
        self._abort_reason: Optional[str] = None
        self._relogin_needed = False
        self.active = 0
        self.peak_active = 0

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    async def run(self, credential: Credential) -> RunSummary:
        """单题模式或全量模式"""
        if self.config.item_id:
            return await self.run_single(credential, self.config.item_id)

        self.print_resume_banner()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        ) as progress:
            task = progress.add_task("[cyan]Fetching problem list...", total=None)
            items = [item async for item in self.scraper.list_all(credential)]
            progress.update(task, completed=True)

        self.console.print(f"Found [bold]{len(items)}[/bold] problems\n")
        return await self.run_items(credential, items)

    async def run_single(self, credential: Credential, item_id: str) -> RunSummary:
        """
        只下载指定编号的题目

        显式请求的题目即使已完成也会重新下载，结果同样写入进度文件。
        """
        item = await self.scraper.find_item(credential, str(item_id))
        if item is None:
            self.console.print(f"[red]✗ Problem #{escape(str(item_id))} not found[/red]")
            summary = self._new_summary(0)
            summary.failed = 1
            return summary
        return await self.run_items(credential, [item], respect_completed=False)

    async def run_items(
        self,
        credential: Credential,
        items: List[Item],
        respect_completed: bool = True,
    ) -> RunSummary:
        total = len(items)
        summary = self._new_summary(total)

        pending: List[Tuple[int, Item]] = []
        for index, item in enumerate(items, start=1):
            if item.locked and not credential.is_premium:
                summary.skipped += 1
                self._print_line(Text.assemble(
                    ("⊘ ", "dim"),
                    self._position(index, total),
                    " ",
                    ("[Premium] ", "yellow"),
                    (f"{item.id}. {item.name}", "dim"),
                    (" (requires premium)", "dim"),
                ))
                continue
            if respect_completed and self.store.is_completed(item.id):
                summary.already_done += 1
                continue
            pending.append((index, item))

        size = self.config.concurrency
        for start in range(0, len(pending), size):
            if self.aborted:
                break
            chunk = pending[start:start + size]
            await asyncio.gather(*(
                self._process(credential, index, total, item)
                for index, item in chunk
            ))

        await self._persist(self.store.flush())

        summary.succeeded = self.store.succeeded_count
        summary.failed = self.store.failed_count
        summary.aborted = self.aborted
        summary.abort_reason = self._abort_reason
        return summary

    async def _process(self, credential: Credential, index: int, total: int, item: Item) -> None:
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            result = await self.fetcher.fetch(credential, item)
        except AuthError as e:
            self._trip(str(e), relogin=True)
            logger.error(f"[{item.id}] Session rejected: {e}")
            self._print_line(Text.assemble(
                ("✗ ", "red"), self._position(index, total), " ", (f"{item.id}. {item.name}", "red"),
                (" (session expired)", "red"),
            ))
            return
        except Exception as e:
            logger.error(f"[{item.id}] {item.slug} failed: {e}")
            await self._persist(self.store.record_exception(item, e))
            self._print_line(Text.assemble(
                ("✗ ", "red"), self._position(index, total), " ", (f"{item.id}. {item.name}", "red"),
                (f" ({e})", "dim"),
            ))
            return
        finally:
            self.active -= 1

        status = await self._persist(self.store.record(result))
        if status is not None:
            self._print_line(self._status_line(index, total, result, status))

    async def _persist(self, write: Awaitable[T]) -> Optional[T]:
        """进度文件写入失败时终止运行，已派发的题目照常结束"""
        try:
            return await write
        except StorageError as e:
            logger.error(str(e))
            self._trip(e.message)
            return None

    def _trip(self, reason: str, relogin: bool = False) -> None:
        if self.aborted:
            return
        self._abort_reason = reason
        self._relogin_needed = relogin
        self._abort.set()

    def _new_summary(self, total: int) -> RunSummary:
        return RunSummary(
            total=total,
            output_dir=str(self.fetcher.output_root),
            progress_file=str(self.store.path),
        )

    @staticmethod
    def _position(index: int, total: int) -> Text:
        return Text.assemble(("[", "dim"), (f"{index}/{total}", "cyan"), ("]", "dim"))

    def _status_line(self, index: int, total: int, result: ItemResult, status: ItemStatus) -> Text:
        item = result.item
        layout = self.fetcher.layout_for(item)
        ok = status == ItemStatus.COMPLETE

        line = Text.assemble(
            ("✓ " if ok else "⚠ ", "green" if ok else "yellow"),
            self._position(index, total),
            " ",
            ("[Premium] ", "yellow") if item.locked else ("[Free] ", "dim"),
            (str(layout.relative_path), "bold"),
        )

        requested = self.config.requested_kinds()
        counts = [("Description", result.status_snapshot()["description"], result.description_ok)]
        for outcome, label in (
            (result.templates, "Templates"),
            (result.official_answer, "Official"),
            (result.community_answer, "Community"),
        ):
            if outcome.kind in requested:
                counts.append((label, outcome.snapshot(), outcome.is_complete))

        line.append("  ")
        for i, (label, snapshot, complete) in enumerate(counts):
            if i:
                line.append(", ", style="dim")
            line.append(f"{label}: ", style="dim")
            line.append(snapshot, style="green" if complete else "yellow")
        return line

    def _print_line(self, line: Text) -> None:
        self.console.print(line)

    def print_resume_banner(self) -> None:
        completed = len(self.store.completed)
        failed = len(self.store.failed)
        if not completed and not failed:
            return
        self.console.print(
            f"[cyan]📋 Found existing progress:[/cyan] "
            f"[green]{completed} completed[/green] (will skip), "
            f"[yellow]{failed} failed[/yellow] (will retry)\n"
        )

    def print_summary(self, summary: RunSummary) -> None:
        """打印运行汇总"""
        self.console.print()

        table = Table(title="📊 Download Summary", show_header=True)
        table.add_column("Result", style="cyan")
        table.add_column("Count", justify="right", style="green")

        table.add_row("Total", str(summary.total))
        table.add_row("Succeeded", str(summary.succeeded))
        table.add_row("Already done", str(summary.already_done))
        table.add_row("Failed / partial", str(summary.failed))
        table.add_row("Skipped (premium)", str(summary.skipped))
        self.console.print(table)

        if summary.aborted:
            self.console.print(f"\n[red]✗ Aborted: {escape(summary.abort_reason or '')}[/red]")
            if self._relogin_needed:
                self.console.print(f"[yellow]{AuthError.RELOGIN_HINT}[/yellow]")
            self.console.print("[dim]Progress has been saved; run download again to resume.[/dim]")

        self.console.print(f"\n📁 Output: {summary.output_dir}")
        self.console.print(f"📋 Progress: {summary.progress_file}")
        if summary.failed:
            self.console.print("[dim]Failed problems will be retried on the next run.[/dim]")
