"""Unit tests for scan domain types."""

import orjson
from pydantic import ValidationError
import pytest

from spellspider.domain import AnalysisResult, PageScanResult, ScanReport, ScanStatus, SpellingError


def _error(**overrides) -> SpellingError:
    values = {
        "original": "recieve",
        "suggestion": "receive",
        "context": "we recieve mail",
        "type": "Spelling",
        "severity": "High",
    }
    values.update(overrides)
    return SpellingError(**values)


def test_spelling_error_rejects_unknown_categories():
    with pytest.raises(ValidationError):
        _error(type="Punctuation")
    with pytest.raises(ValidationError):
        _error(severity="Critical")


def test_status_terminality():
    assert not ScanStatus.PENDING.is_terminal
    assert not ScanStatus.PROCESSING.is_terminal
    assert ScanStatus.COMPLETED.is_terminal
    assert ScanStatus.FAILED.is_terminal


def test_page_result_lifecycle():
    result = PageScanResult(url="https://example.com/")
    assert (result.status, result.title) == (ScanStatus.PENDING, "Pending...")

    result.mark_processing()
    assert (result.status, result.title) == (ScanStatus.PROCESSING, "Analyzing...")

    result.mark_completed("Home", 120, AnalysisResult(errors=[_error()], score=88, summary="Good."))
    assert result.status == ScanStatus.COMPLETED
    assert result.word_count == 120
    assert result.score == 88
    assert len(result.errors) == 1

    result.mark_failed("Access Denied", "blocked")
    assert result.status == ScanStatus.FAILED
    assert result.errors == []
    assert result.failure_detail == "blocked"


def test_report_export_includes_totals():
    completed = PageScanResult(url="https://example.com/a")
    completed.mark_completed("A", 10, AnalysisResult(errors=[_error(), _error(original="teh")], score=60))
    failed = PageScanResult(url="https://example.com/b")
    failed.mark_failed("Analysis Failed", "boom")
    report = ScanReport(target_url="https://example.com/", results=[completed, failed])

    payload = orjson.loads(report.to_json())

    assert report.total_errors == 2
    assert payload["total_errors"] == 2
    assert payload["id"] == report.id
    assert payload["target_url"] == "https://example.com/"
    assert [page["status"] for page in payload["results"]] == ["completed", "failed"]
    assert payload["results"][0]["errors"][1]["original"] == "teh"
    assert report.to_dict()["results"][1]["failure_detail"] == "boom"
    assert [page.url for page in report.failed_pages] == ["https://example.com/b"]


def test_analysis_result_score_is_clamped():
    assert AnalysisResult(score=-5).score == 0
    assert AnalysisResult(score=99.6).score == 100
    assert AnalysisResult(score=None).score == 100


@pytest.mark.parametrize("score", [float("inf"), float("-inf"), float("nan")])
def test_analysis_result_rejects_non_finite_scores(score):
    with pytest.raises(ValidationError):
        AnalysisResult(score=score)
