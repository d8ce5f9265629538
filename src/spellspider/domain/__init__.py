"""Domain layer - scan results with no infrastructure dependencies."""

from spellspider.domain.model import (
    AnalysisResult,
    PageScanResult,
    ScanReport,
    ScanStatus,
    SpellingError,
)


__all__ = [
    "AnalysisResult",
    "PageScanResult",
    "ScanReport",
    "ScanStatus",
    "SpellingError",
]
