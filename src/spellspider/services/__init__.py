"""Service layer - crawling, analysis and the scan pipeline."""

from spellspider.services.analysis_service import (
    AnalysisError,
    AnalysisService,
    GeminiAnalysisService,
    parse_analysis_response,
)
from spellspider.services.crawler_service import CrawlerService, discover_urls, fetch_page_content
from spellspider.services.scan_service import ScanService, failure_title


__all__ = [
    "AnalysisError",
    "AnalysisService",
    "CrawlerService",
    "GeminiAnalysisService",
    "ScanService",
    "discover_urls",
    "failure_title",
    "fetch_page_content",
    "parse_analysis_response",
]
