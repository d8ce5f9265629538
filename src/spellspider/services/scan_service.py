"""Multi-page scan pipeline: discover pages, then fetch and analyze each in turn."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
from typing import Protocol

from ..domain.model import AnalysisResult, PageScanResult, ScanReport
from ..observability.context import bind_scan_context
from ..utils.models import PageContent
from ..utils.progress import ProgressCallback
from ..utils.urls import normalize_target_url
from .analysis_service import AnalysisService


logger = logging.getLogger(__name__)

PageCallback = Callable[[PageScanResult], None]

# Failure messages containing any of these are reported as blocked pages
ACCESS_DENIED_HINTS = ("Access Denied", "blocks automated")

ACCESS_DENIED_TITLE = "Access Denied"
ANALYSIS_FAILED_TITLE = "Analysis Failed"

# Pseudo-URL and default title for pasted text
MANUAL_INPUT_URL = "manual-input"
MANUAL_INPUT_TITLE = "Manual Text Entry"


class PageSource(Protocol):
    """The crawler operations the scan needs."""

    async def discover_urls(self, target_url: str, on_progress: ProgressCallback | None = None) -> list[str]: ...

    async def fetch_page_content(self, url: str) -> PageContent: ...


def failure_title(error: BaseException) -> str:
    message = str(error)
    if any(hint in message for hint in ACCESS_DENIED_HINTS):
        return ACCESS_DENIED_TITLE
    return ANALYSIS_FAILED_TITLE


def _assign_error_ids(analysis: AnalysisResult, index: int) -> None:
    for number, error in enumerate(analysis.errors, start=1):
        if not error.id:
            error.id = f"{index}-{number}"


class ScanService:
    """Runs a sequential scan over a site's pages.

    One page failing never stops the scan; it is recorded as ``failed`` and the
    next page is processed.
    """

    def __init__(self, crawler: PageSource, analyzer: AnalysisService):
        self.crawler = crawler
        self.analyzer = analyzer

    async def scan(
        self,
        target_url: str,
        pages: Sequence[str] | None = None,
        max_pages: int | None = None,
        on_progress: ProgressCallback | None = None,
        *,
        on_page: PageCallback | None = None,
    ) -> ScanReport:
        """Scan ``target_url``.

        Args:
            target_url: Site to scan; ``https://`` is assumed when no scheme is given
            pages: Explicit page list; discovery runs when omitted
            max_pages: Only the first N pages (in discovery order) are scanned
            on_progress: Receives discovery status text
            on_page: Receives each page result after every status change

        Raises:
            InvalidTargetUrl: If the target cannot be normalized
            ValueError: If ``max_pages`` is below 1
        """
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be at least 1")

        target = normalize_target_url(target_url)

        with bind_scan_context(target=target) as scan_id:
            if pages is None:
                selected = await self.crawler.discover_urls(target, on_progress)
            else:
                selected = list(dict.fromkeys(pages))
            if max_pages is not None:
                selected = selected[:max_pages]

            report = ScanReport(id=scan_id, target_url=target)
            report.results = [PageScanResult(url=url) for url in selected]
            logger.info(f"Scanning {len(report.results)} page(s) for {target}")

            for index, result in enumerate(report.results, start=1):
                result.mark_processing()
                self._notify(on_page, result)
                await self._scan_page(result, index)
                self._notify(on_page, result)

            failed = len(report.failed_pages)
            logger.info(
                f"Scan {scan_id} finished: {len(report.results) - failed} completed, "
                f"{failed} failed, {report.total_errors} issue(s)"
            )
            return report

    async def analyze_text(self, text: str, title: str | None = None) -> PageScanResult:
        """Analyze pasted copy as a single pseudo-page.

        The result uses the ``manual-input`` URL and, without a title, the
        "Manual Text Entry" title. Analysis failures propagate.

        Raises:
            ValueError: If ``text`` is blank
            AnalysisError: If the analysis service fails
        """
        if not text or not text.strip():
            raise ValueError("No text to analyze")

        result = PageScanResult(url=MANUAL_INPUT_URL)
        result.mark_processing()
        with bind_scan_context(target=MANUAL_INPUT_URL):
            analysis = await self.analyzer.analyze(text)

        _assign_error_ids(analysis, 1)
        word_count = len(text.split())
        result.mark_completed((title or "").strip() or MANUAL_INPUT_TITLE, word_count, analysis)
        logger.info(f"Analyzed {word_count} words of manual text: {len(analysis.errors)} issue(s)")
        return result

    async def _scan_page(self, result: PageScanResult, index: int) -> None:
        try:
            page = await self.crawler.fetch_page_content(result.url)
            analysis = await self.analyzer.analyze(page.text)
        except Exception as e:
            logger.warning(f"Failed to scan {result.url}: {e}")
            result.mark_failed(failure_title(e), str(e))
            return

        _assign_error_ids(analysis, index)
        result.mark_completed(page.title, page.word_count, analysis)
        logger.debug(f"Scanned {result.url}: {page.word_count} words, {len(analysis.errors)} issue(s)")

    @staticmethod
    def _notify(callback: PageCallback | None, result: PageScanResult) -> None:
        if callback is None:
            return
        try:
            callback(result)
        except Exception as e:
            logger.warning(f"Page callback raised for {result.url}: {e}")
