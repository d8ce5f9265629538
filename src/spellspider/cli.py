"""Command line entry point: discover a site's pages, scan them, or check pasted text."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from .config import Settings
from .domain.model import PageScanResult, ScanReport, ScanStatus
from .observability.logging import configure_logging
from .services.analysis_service import AnalysisError, GeminiAnalysisService
from .services.crawler_service import CrawlerService
from .services.scan_service import ScanService
from .utils.urls import InvalidTargetUrl, normalize_target_url


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_PAGES_FAILED = 2


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spellspider",
        description="Find a website's pages and audit their copy for spelling, grammar and style issues",
    )
    parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this run",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    discover = subparsers.add_parser("discover", help="List the pages that would be scanned")
    discover.add_argument("url", help="Target site, e.g. example.com or https://example.com")
    discover.add_argument("--json", action="store_true", help="Print the URL list as JSON")

    scan = subparsers.add_parser("scan", help="Discover pages and analyze each one")
    scan.add_argument("url", help="Target site, e.g. example.com or https://example.com")
    scan.add_argument(
        "--max-pages",
        type=int,
        help="Scan only the first N discovered pages",
    )
    scan.add_argument(
        "--output",
        type=Path,
        help="Write the JSON report to this file",
    )
    scan.add_argument("--json", action="store_true", help="Print the JSON report to stdout")

    check = subparsers.add_parser("check", help="Analyze text from a file or stdin")
    check.add_argument("path", nargs="?", default="-", help="Text file to analyze; - or omitted reads stdin")
    check.add_argument("--title", help="Title shown for the text (default: Manual Text Entry)")
    check.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def _validate_args(args: argparse.Namespace) -> None:
    if getattr(args, "max_pages", None) is not None and args.max_pages < 1:
        raise ValueError("--max-pages must be >= 1")


def _print_progress(message: str) -> None:
    sys.stderr.write(f"{message}\n")


def _print_page(result: PageScanResult) -> None:
    if result.status == ScanStatus.PROCESSING:
        sys.stderr.write(f"Analyzing {result.url}\n")
    elif result.status == ScanStatus.COMPLETED:
        sys.stderr.write(f"  {result.title}: score {result.score}, {len(result.errors)} issue(s)\n")
    elif result.status == ScanStatus.FAILED:
        sys.stderr.write(f"  {result.title}: {result.failure_detail}\n")


def _format_page(result: PageScanResult) -> list[str]:
    score = "-" if result.score is None else str(result.score)
    lines = [f"  [{result.status.value}] {result.url} score={score} issues={len(result.errors)}"]
    for error in result.errors:
        lines.append(f"      {error.severity} {error.type}: {error.original!r} -> {error.suggestion!r}")
    return lines


def _format_report(report: ScanReport) -> str:
    lines = [f"Scan {report.id} of {report.target_url}: {report.total_errors} issue(s)"]
    for result in report.results:
        lines.extend(_format_page(result))
    return "\n".join(lines)


async def _run_discover(target_url: str, settings: Settings) -> list[str]:
    async with CrawlerService(settings) as crawler:
        return await crawler.discover_urls(target_url, _print_progress)


async def _run_scan(args: argparse.Namespace, target_url: str, settings: Settings) -> ScanReport:
    async with CrawlerService(settings) as crawler:
        service = ScanService(crawler, GeminiAnalysisService(settings))
        return await service.scan(
            target_url,
            max_pages=args.max_pages,
            on_progress=_print_progress,
            on_page=_print_page,
        )


async def _run_check(text: str, title: str | None, settings: Settings) -> PageScanResult:
    # Pasted text needs no HTTP client; the crawler stays unopened
    service = ScanService(CrawlerService(settings), GeminiAnalysisService(settings))
    return await service.analyze_text(text, title)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _check(args: argparse.Namespace, settings: Settings) -> int:
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY is required for analysis")
        return EXIT_INVALID

    try:
        text = _read_text(args.path)
    except OSError as exc:
        logger.error(f"Cannot read {args.path}: {exc}")
        return EXIT_INVALID
    if not text.strip():
        logger.error("No text to analyze")
        return EXIT_INVALID

    try:
        result = asyncio.run(_run_check(text, args.title, settings))
    except AnalysisError as exc:
        logger.error(f"Analysis failed: {exc}")
        return EXIT_PAGES_FAILED

    if args.json:
        payload = orjson.dumps(result.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
        sys.stdout.write(payload.decode("utf-8") + "\n")
    else:
        lines = [f"{result.title}: {result.word_count} words, {len(result.errors)} issue(s)", *_format_page(result)]
        if result.summary:
            lines.append(f"  {result.summary}")
        sys.stdout.write("\n".join(lines) + "\n")
    return EXIT_OK


def _discover(args: argparse.Namespace, target_url: str, settings: Settings) -> int:
    urls = asyncio.run(_run_discover(target_url, settings))
    if args.json:
        sys.stdout.write(orjson.dumps(urls, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
    else:
        for url in urls:
            sys.stdout.write(f"{url}\n")
    return EXIT_OK


def _scan(args: argparse.Namespace, target_url: str, settings: Settings) -> int:
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY is required for scanning")
        return EXIT_INVALID

    report = asyncio.run(_run_scan(args, target_url, settings))

    if args.output:
        args.output.write_text(report.to_json() + "\n", encoding="utf-8")
        logger.info(f"Report written to {args.output}")
    if args.json:
        sys.stdout.write(report.to_json() + "\n")
    else:
        sys.stdout.write(_format_report(report) + "\n")

    if report.failed_pages:
        logger.warning(f"{len(report.failed_pages)} page(s) could not be scanned")
        return EXIT_PAGES_FAILED
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        sys.stderr.write(f"Invalid configuration: {exc}\n")
        return EXIT_INVALID

    configure_logging(args.log_level or settings.log_level, settings.log_json, stream=sys.stderr)

    if args.command == "check":
        return _check(args, settings)

    try:
        _validate_args(args)
        target_url = normalize_target_url(args.url)
    except (InvalidTargetUrl, ValueError) as exc:
        logger.error(f"{exc}")
        return EXIT_INVALID

    if args.command == "discover":
        return _discover(args, target_url, settings)
    return _scan(args, target_url, settings)


if __name__ == "__main__":
    sys.exit(main())
