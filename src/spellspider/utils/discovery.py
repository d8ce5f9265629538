"""Top-level page discovery: sitemap, then homepage links, then the target alone.

Discovery never fails for an unreachable site; it degrades to returning just
the target URL so the caller can still try to scan it. Only a target that
cannot be parsed as an http(s) URL raises.
"""

from __future__ import annotations

import logging

from .fallback_chain import Strategy, StrategyRejected, run_fallback_chain
from .html_content import extract_links
from .models import FailureReason
from .page_fetcher import PageFetcher
from .progress import DiscoveryStatus, ProgressCallback, ProgressReporter
from .sitemap_resolver import SitemapResolver
from .urls import require_origin


logger = logging.getLogger(__name__)


class DiscoveryOrchestrator:
    """Linear discovery state machine: sitemap -> homepage crawl -> degraded."""

    def __init__(self, sitemap_resolver: SitemapResolver, page_fetcher: PageFetcher):
        self.sitemap_resolver = sitemap_resolver
        self.page_fetcher = page_fetcher

    async def discover_urls(self, target_url: str, on_progress: ProgressCallback | None = None) -> list[str]:
        """Discover candidate pages for ``target_url``.

        Args:
            target_url: Absolute http(s) URL of the site to audit
            on_progress: Optional callback receiving human-readable status text

        Returns:
            Lexically sorted, non-empty list of same-origin URLs

        Raises:
            InvalidTargetUrl: If ``target_url`` has no http(s) origin
        """
        require_origin(target_url)
        reporter = ProgressReporter(on_progress)
        logger.info(f"Starting URL discovery for {target_url}")

        async def sitemap_phase() -> list[str]:
            reporter.emit(DiscoveryStatus.SEARCHING_SITEMAP)
            urls = await self.sitemap_resolver.resolve_sitemap_urls(target_url, on_progress)
            if not urls:
                raise StrategyRejected(FailureReason.NO_RESULTS, "no sitemap yielded page URLs")
            reporter.emit(DiscoveryStatus.SITEMAP_FOUND, count=len(urls))
            return sorted(urls)

        async def crawl_phase() -> list[str]:
            reporter.emit(DiscoveryStatus.FALLING_BACK_TO_CRAWL)
            reporter.emit(DiscoveryStatus.CRAWLING_HOMEPAGE)
            page = await self.page_fetcher.fetch_page_content(target_url)
            links = extract_links(page.html, target_url)
            urls = sorted({target_url, *links})
            reporter.emit(DiscoveryStatus.HOMEPAGE_CRAWLED, count=len(urls))
            return urls

        async def degraded_phase() -> list[str]:
            reporter.emit(DiscoveryStatus.DEGRADED, url=target_url)
            return [target_url]

        phases: list[Strategy[list[str]]] = [
            Strategy("sitemap", sitemap_phase),
            Strategy("homepage-crawl", crawl_phase),
            Strategy("degraded", degraded_phase),
        ]
        phase, urls = await run_fallback_chain(phases, label="discovery")

        if phase.name == "degraded":
            logger.warning(f"Discovery degraded for {target_url}: returning target URL only")
        else:
            logger.info(f"Discovered {len(urls)} URLs for {target_url} via {phase.name}")
        return urls
