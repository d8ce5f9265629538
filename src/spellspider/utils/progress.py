"""Discovery progress events and their default human-readable rendering."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class DiscoveryStatus(str, Enum):
    """Phases and steps reported while discovering a site's pages."""

    SEARCHING_SITEMAP = "searching-sitemap"
    CHECKING_SITEMAP_CANDIDATE = "checking-sitemap-candidate"
    PARSING_SITEMAP = "parsing-sitemap"
    TRYING_DIRECT = "trying-direct"
    TRYING_PROXY = "trying-proxy"
    NESTED_SITEMAP_FOUND = "nested-sitemap-found"
    SITEMAP_FOUND = "sitemap-found"
    FALLING_BACK_TO_CRAWL = "falling-back-to-crawl"
    CRAWLING_HOMEPAGE = "crawling-homepage"
    HOMEPAGE_CRAWLED = "homepage-crawled"
    DEGRADED = "degraded"


_TEMPLATES: dict[DiscoveryStatus, str] = {
    DiscoveryStatus.SEARCHING_SITEMAP: "Searching for sitemaps...",
    DiscoveryStatus.CHECKING_SITEMAP_CANDIDATE: "Checking for sitemap at {name}",
    DiscoveryStatus.PARSING_SITEMAP: "Parsing sitemap: {name}",
    DiscoveryStatus.TRYING_DIRECT: "Trying to access sitemap directly...",
    DiscoveryStatus.TRYING_PROXY: "Attempting via {proxy} proxy...",
    DiscoveryStatus.NESTED_SITEMAP_FOUND: "Found {count} nested sitemap(s), parsing...",
    DiscoveryStatus.SITEMAP_FOUND: "Found {count} page(s) in sitemap",
    DiscoveryStatus.FALLING_BACK_TO_CRAWL: "No usable sitemap found, falling back to homepage links...",
    DiscoveryStatus.CRAWLING_HOMEPAGE: "Scanning homepage for links...",
    DiscoveryStatus.HOMEPAGE_CRAWLED: "Found {count} page(s) linked from the homepage",
    DiscoveryStatus.DEGRADED: "Could not list the site's pages; continuing with {url} only",
}


@dataclass(slots=True, frozen=True)
class DiscoveryProgress:
    """A structured progress event; ``message`` is its default rendering."""

    status: DiscoveryStatus
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return _TEMPLATES[self.status].format(**self.params)


def last_path_segment(url: str) -> str:
    return url.rstrip("/").split("/")[-1] or url


class ProgressReporter:
    """Renders progress events and hands them to an optional callback.

    A failing callback is logged and otherwise ignored.
    """

    def __init__(self, callback: ProgressCallback | None = None):
        self.callback = callback

    def emit(self, status: DiscoveryStatus, **params: Any) -> DiscoveryProgress:
        event = DiscoveryProgress(status, params)
        logger.debug(f"Progress [{status.value}]: {event.message}")
        if self.callback is not None:
            try:
                self.callback(event.message)
            except Exception as e:
                logger.warning(f"Progress callback failed for {status.value}: {e}")
        return event
