"""Unit tests for the sequential scan pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from spellspider.domain.model import AnalysisResult, ScanStatus, SpellingError
from spellspider.observability.context import get_scan_context
from spellspider.services.analysis_service import AnalysisError
from spellspider.services.scan_service import MANUAL_INPUT_URL, ScanService, failure_title
from spellspider.utils.fallback_chain import FallbackExhausted
from spellspider.utils.models import PageContent
from spellspider.utils.page_fetcher import PageUnreachable


def _error(original: str) -> SpellingError:
    return SpellingError(original=original, suggestion="fixed", context="...", type="Grammar", severity="Medium")


def _page(url: str, text: str = "one two three") -> PageContent:
    return PageContent(text=text, html=f"<p>{text}</p>", title=f"Title of {url}")


@pytest.fixture
def crawler():
    crawler = MagicMock()
    crawler.discover_urls = AsyncMock(return_value=["https://example.com/", "https://example.com/a"])
    crawler.fetch_page_content = AsyncMock(side_effect=lambda url: _page(url))
    return crawler


@pytest.fixture
def analyzer():
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(
        return_value=AnalysisResult(errors=[_error("their is"), _error("a apple")], score=70, summary="Fair.")
    )
    return analyzer


@pytest.mark.asyncio
class TestScanService:
    async def test_scan_discovers_then_completes_every_page(self, crawler, analyzer):
        report = await ScanService(crawler, analyzer).scan("example.com")

        crawler.discover_urls.assert_awaited_once()
        assert crawler.discover_urls.await_args.args[0] == "https://example.com/"
        assert report.target_url == "https://example.com/"
        assert [r.status for r in report.results] == [ScanStatus.COMPLETED, ScanStatus.COMPLETED]
        first = report.results[0]
        assert first.title == "Title of https://example.com/"
        assert first.word_count == 3
        assert first.score == 70
        assert [e.id for e in first.errors] == ["1-1", "1-2"]
        assert report.total_errors == 4

    async def test_page_callback_sees_each_transition(self, crawler, analyzer):
        seen: list[tuple[str, ScanStatus]] = []

        await ScanService(crawler, analyzer).scan(
            "https://example.com/",
            pages=["https://example.com/only"],
            on_page=lambda result: seen.append((result.url, result.status)),
        )

        assert seen == [
            ("https://example.com/only", ScanStatus.PROCESSING),
            ("https://example.com/only", ScanStatus.COMPLETED),
        ]
        crawler.discover_urls.assert_not_awaited()

    async def test_failures_are_recorded_and_scan_continues(self, crawler, analyzer):
        blocked = PageUnreachable("https://example.com/", FallbackExhausted([]), 5)
        crawler.fetch_page_content.side_effect = [
            blocked,
            _page("https://example.com/a"),
            _page("https://example.com/b"),
        ]
        analyzer.analyze.side_effect = [
            AnalysisError("Failed to parse AI response"),
            AnalysisResult(),
        ]

        report = await ScanService(crawler, analyzer).scan(
            "https://example.com/",
            pages=["https://example.com/", "https://example.com/a", "https://example.com/b"],
        )

        statuses = [r.status for r in report.results]
        assert statuses == [ScanStatus.FAILED, ScanStatus.FAILED, ScanStatus.COMPLETED]
        assert report.results[0].title == "Analysis Failed"
        assert "Unable to access https://example.com/" in report.results[0].failure_detail
        assert report.results[1].title == "Analysis Failed"
        assert report.results[0].errors == []
        assert len(report.failed_pages) == 2

    async def test_max_pages_limits_the_scan(self, crawler, analyzer):
        report = await ScanService(crawler, analyzer).scan("https://example.com/", max_pages=1)

        assert [r.url for r in report.results] == ["https://example.com/"]
        assert crawler.fetch_page_content.await_count == 1

    async def test_explicit_pages_are_deduplicated_in_order(self, crawler, analyzer):
        report = await ScanService(crawler, analyzer).scan(
            "https://example.com/",
            pages=["https://example.com/b", "https://example.com/a", "https://example.com/b"],
        )

        assert [r.url for r in report.results] == ["https://example.com/b", "https://example.com/a"]

    async def test_invalid_max_pages(self, crawler, analyzer):
        with pytest.raises(ValueError):
            await ScanService(crawler, analyzer).scan("https://example.com/", max_pages=0)

    async def test_report_id_is_the_bound_scan_id(self, crawler, analyzer):
        captured: list[dict] = []

        async def analyze(text):
            captured.append(get_scan_context())
            return AnalysisResult()

        analyzer.analyze.side_effect = analyze

        report = await ScanService(crawler, analyzer).scan("https://example.com/", pages=["https://example.com/"])

        assert captured[0]["scan_id"] == report.id
        assert captured[0]["target"] == "https://example.com/"
        assert get_scan_context() == {}

    async def test_failing_page_callback_is_ignored(self, crawler, analyzer):
        def explode(result):
            raise RuntimeError("display crashed")

        report = await ScanService(crawler, analyzer).scan(
            "https://example.com/", pages=["https://example.com/"], on_page=explode
        )

        assert report.results[0].status == ScanStatus.COMPLETED

    async def test_analyze_text_builds_a_manual_input_result(self, crawler, analyzer):
        result = await ScanService(crawler, analyzer).analyze_text("Their is a apple\n on the  table.")

        analyzer.analyze.assert_awaited_once_with("Their is a apple\n on the  table.")
        crawler.fetch_page_content.assert_not_awaited()
        assert result.url == MANUAL_INPUT_URL
        assert result.title == "Manual Text Entry"
        assert result.status == ScanStatus.COMPLETED
        assert result.word_count == 7
        assert result.score == 70
        assert [e.id for e in result.errors] == ["1-1", "1-2"]

    async def test_analyze_text_keeps_given_title(self, crawler, analyzer):
        result = await ScanService(crawler, analyzer).analyze_text("Draft copy.", title="  Homepage Draft ")

        assert result.title == "Homepage Draft"

    @pytest.mark.parametrize("text", ["", "  \n\t "])
    async def test_analyze_text_rejects_blank_input(self, crawler, analyzer, text):
        with pytest.raises(ValueError):
            await ScanService(crawler, analyzer).analyze_text(text)

        analyzer.analyze.assert_not_awaited()

    async def test_analyze_text_propagates_analysis_failure(self, crawler, analyzer):
        analyzer.analyze.side_effect = AnalysisError("Failed to parse AI response")

        with pytest.raises(AnalysisError):
            await ScanService(crawler, analyzer).analyze_text("Some text.")


@pytest.mark.parametrize(
    ("message", "title"),
    [
        ("Access Denied by upstream firewall", "Access Denied"),
        ("This site blocks automated requests", "Access Denied"),
        ("Failed to parse AI response", "Analysis Failed"),
    ],
)
def test_failure_title(message, title):
    assert failure_title(RuntimeError(message)) == title
