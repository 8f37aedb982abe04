"""CLI entrypoint: download problems with resume support, export filtered copies."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from auth import SessionFileCredentialProvider
from config import get_settings
from models import FetchConfig, OutputFormat, RunSummary
from orchestrator import DownloadScheduler, ItemFetcher
from outputs import build_export_config, export_downloads, format_bytes
from processing import MediaRewriter
from scrapers import LeetCodeScraper
from storage import ProgressStore
from utils import AuthError, FetchError, RetryExecutor, console, setup_logger


logger = logging.getLogger(__name__)


def _csv(text: Optional[str]) -> List[str]:
    return [part.strip() for part in str(text or "").split(",") if part.strip()]


def _parse_formats(text: str) -> List[OutputFormat]:
    formats = []
    for part in _csv(text):
        try:
            formats.append(OutputFormat(part.lower()))
        except ValueError:
            valid = ", ".join(f.value for f in OutputFormat)
            raise argparse.ArgumentTypeError(f"invalid format: {part} (valid: {valid})") from None
    if not formats:
        raise argparse.ArgumentTypeError("at least one format is required")
    return formats


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="LeetCode problem fetcher")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--log-file", default=None, help="also write logs to this file (relative paths go under logs/)")
    sub = parser.add_subparsers(dest="command", required=True)

    download = sub.add_parser("download", help="download problems (resumable)")
    download.add_argument("item_id", nargs="?", default=None, help="download a single problem by id")
    download.add_argument("-f", "--formats", type=_parse_formats, default=_parse_formats("html,md,raw"))
    download.add_argument("--no-templates", action="store_true")
    download.add_argument("--no-solutions", action="store_true", help="skip community solutions")
    download.add_argument("--no-official", action="store_true")
    download.add_argument("-c", "--concurrency", type=int, default=settings.download.concurrency)
    download.add_argument("-o", "--output", default=settings.download.output_dir)
    download.add_argument("--session-file", default=None)

    export = sub.add_parser("export", help="copy downloaded problems filtered by language/format")
    export.add_argument("-o", "--output", default=None)
    export.add_argument("-s", "--source", default=settings.download.output_dir)
    export.add_argument("-l", "--languages", default="", help="comma separated, e.g. python3,cpp")
    export.add_argument("-f", "--format", default="md")
    export.add_argument("--official", action="store_true", help="include official solutions")

    return parser


async def run_download(args: argparse.Namespace) -> RunSummary:
    settings = get_settings()
    provider = SessionFileCredentialProvider(args.session_file)
    credential = provider.acquire()
    if not provider.is_valid(credential):
        raise AuthError("Session is incomplete.")

    config = FetchConfig(
        item_id=args.item_id,
        formats=args.formats,
        fetch_templates=not args.no_templates,
        fetch_community_answers=not args.no_solutions,
        fetch_official_answer=not args.no_official,
        concurrency=args.concurrency,
    )
    output_root = Path(args.output)
    store = ProgressStore.load(output_root / settings.download.progress_file)
    retry = RetryExecutor()

    async with LeetCodeScraper() as scraper:
        verified = await scraper.verify_session(credential)
        if verified is None:
            raise AuthError("Session expired or invalid.")
        credential = verified

        console.print(
            f"[green]✓[/green] Signed in as [bold]{credential.username or 'unknown'}[/bold]"
            f" ({'Premium' if credential.is_premium else 'Free'})\n"
        )

        media = MediaRewriter(retry=retry, base_url=scraper.base_url)
        try:
            fetcher = ItemFetcher(scraper, config, output_root, media=media, retry=retry,
                                  base_url=scraper.base_url)
            scheduler = DownloadScheduler(scraper, fetcher, store, config, console=console)
            summary = await scheduler.run(credential)
            scheduler.print_summary(summary)
        finally:
            await media.close()

    return summary


def run_export(args: argparse.Namespace) -> None:
    config = build_export_config(
        output=args.output,
        source_dir=args.source,
        languages=_csv(args.languages) or None,
        fmt=args.format,
        include_official=args.official,
    )
    summary = export_downloads(config)

    console.print(f"\n[green]✓[/green] Exported [bold]{summary.total_problems}[/bold] problems "
                  f"({summary.total_files} files, {format_bytes(summary.total_bytes)}) to {config.output}")
    for category, count in sorted(summary.categories.items()):
        console.print(f"  [cyan]{category}[/cyan]: {count}")
    for folder, error in summary.failures.items():
        console.print(f"  [red]✗ {folder}[/red]: {error}")


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    setup_logger(verbose=args.verbose, log_file=args.log_file)

    try:
        if args.command == "download":
            summary = asyncio.run(run_download(args))
            return 1 if summary.aborted else 0
        if args.command == "export":
            run_export(args)
            return 0
    except AuthError as e:
        console.print(f"[red]✗ {escape(e.message)}[/red]")
        console.print(f"[yellow]{AuthError.RELOGIN_HINT}[/yellow]")
        return 1
    except FetchError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. Progress has been saved; run download again to resume.[/yellow]")
        return 130

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
