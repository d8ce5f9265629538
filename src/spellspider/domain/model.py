"""Domain model for editorial scans.

Pure data with validation; no HTTP clients or model SDKs here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import math
from typing import Literal
from uuid import uuid4

import orjson
from pydantic import BaseModel, Field, field_validator


ErrorType = Literal["Spelling", "Grammar", "Style", "Clarity", "Tone"]
Severity = Literal["Low", "Medium", "High"]


class ScanStatus(str, Enum):
    """Lifecycle of one page within a scan."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {ScanStatus.COMPLETED, ScanStatus.FAILED}


class SpellingError(BaseModel):
    """One editorial issue flagged by the analysis service."""

    original: str = Field(description="The incorrect snippet")
    suggestion: str = Field(description="The correction")
    context: str = Field(default="", description="Surrounding text")
    type: ErrorType = Field(description="Issue category")
    severity: Severity = Field(description="Issue severity")
    explanation: str | None = Field(default=None, description="Reason for the flag")
    id: str | None = Field(default=None, description="Stable ID used to track resolution")


class AnalysisResult(BaseModel):
    """Output contract of the analysis service."""

    errors: list[SpellingError] = Field(default_factory=list)
    score: int = Field(default=100, description="Quality score from 0-100")
    summary: str = Field(default="No summary provided.")

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: object) -> int:
        if value is None:
            return 100
        score = float(value)
        if not math.isfinite(score):
            raise ValueError(f"score must be a finite number, got {value!r}")
        return max(0, min(100, int(round(score))))

    @field_validator("summary", mode="before")
    @classmethod
    def _default_summary(cls, value: object) -> str:
        text = str(value).strip() if value is not None else ""
        return text or "No summary provided."


class PageScanResult(BaseModel):
    """Scan outcome for one page."""

    url: str
    title: str = "Pending..."
    status: ScanStatus = ScanStatus.PENDING
    errors: list[SpellingError] = Field(default_factory=list)
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    word_count: int = Field(default=0, ge=0)
    score: int | None = None
    summary: str | None = None
    failure_detail: str | None = None

    def mark_processing(self) -> None:
        self.status = ScanStatus.PROCESSING
        self.title = "Analyzing..."

    def mark_completed(self, title: str, word_count: int, analysis: AnalysisResult) -> None:
        self.status = ScanStatus.COMPLETED
        self.title = title
        self.word_count = word_count
        self.errors = list(analysis.errors)
        self.score = analysis.score
        self.summary = analysis.summary
        self.scanned_at = datetime.now(timezone.utc)

    def mark_failed(self, title: str, detail: str) -> None:
        self.status = ScanStatus.FAILED
        self.title = title
        self.errors = []
        self.failure_detail = detail
        self.scanned_at = datetime.now(timezone.utc)


class ScanReport(BaseModel):
    """A completed multi-page scan; the unit exported as JSON."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    target_url: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    results: list[PageScanResult] = Field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return sum(len(result.errors) for result in self.results)

    @property
    def failed_pages(self) -> list[PageScanResult]:
        return [result for result in self.results if result.status == ScanStatus.FAILED]

    def to_dict(self) -> dict:
        payload = self.model_dump(mode="json")
        payload["total_errors"] = self.total_errors
        return payload

    def to_json(self) -> str:
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2).decode("utf-8")
