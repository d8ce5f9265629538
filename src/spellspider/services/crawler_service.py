"""Crawler service: owns the HTTP client and wires the discovery/fetch pipeline.

Usage:
    async with CrawlerService(settings) as crawler:
        urls = await crawler.discover_urls("https://example.com", print)
        page = await crawler.fetch_page_content(urls[0])
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

import httpx

from ..config import Settings
from ..utils.discovery import DiscoveryOrchestrator
from ..utils.models import PageContent, ProxyConfig
from ..utils.page_fetcher import PageFetcher
from ..utils.progress import ProgressCallback
from ..utils.proxy_cascade import DEFAULT_PROXIES, ProxyCascade
from ..utils.sitemap_resolver import SitemapResolver


logger = logging.getLogger(__name__)


class CrawlerService:
    """Entry point for page discovery and content fetching.

    The proxy list and HTTP client are injectable so callers (and tests) can
    substitute their own relays or transport.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        proxies: Sequence[ProxyConfig] = DEFAULT_PROXIES,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or Settings()
        self.proxies = tuple(proxies)
        self.client = client
        self._owns_client = client is None
        self._discovery: DiscoveryOrchestrator | None = None
        self._page_fetcher: PageFetcher | None = None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.client is None:
            self.client = self._create_client()
            self._owns_client = True
        self._build_pipeline()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
        self._discovery = None
        self._page_fetcher = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create the shared HTTP client."""
        timeout = httpx.Timeout(self.settings.http_timeout, connect=min(10.0, self.settings.http_timeout))
        headers = {
            "User-Agent": self.settings.get_random_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        return httpx.AsyncClient(timeout=timeout, headers=headers, follow_redirects=True)

    def _build_pipeline(self) -> None:
        assert self.client is not None, "HTTP client must be created first"
        cascade = ProxyCascade(self.client, self.settings, self.proxies)
        self._page_fetcher = PageFetcher(cascade)
        self._discovery = DiscoveryOrchestrator(SitemapResolver(cascade), self._page_fetcher)
        logger.debug(f"Crawler pipeline ready with proxies: {[proxy.name for proxy in self.proxies]}")

    def _require_pipeline(self) -> tuple[DiscoveryOrchestrator, PageFetcher]:
        if self._discovery is None or self._page_fetcher is None:
            if self.client is None:
                raise RuntimeError("CrawlerService must be used as async context manager")
            self._build_pipeline()
        assert self._discovery is not None and self._page_fetcher is not None
        return self._discovery, self._page_fetcher

    async def discover_urls(self, target_url: str, on_progress: ProgressCallback | None = None) -> list[str]:
        """Discover candidate pages for a site; never empty, sorted."""
        discovery, _ = self._require_pipeline()
        return await discovery.discover_urls(target_url, on_progress)

    async def fetch_page_content(self, url: str) -> PageContent:
        """Fetch and parse one page; raises PageUnreachable when every strategy fails."""
        _, page_fetcher = self._require_pipeline()
        return await page_fetcher.fetch_page_content(url)


async def discover_urls(
    target_url: str,
    on_progress: ProgressCallback | None = None,
    *,
    settings: Settings | None = None,
) -> list[str]:
    """One-shot discovery with a temporary client."""
    async with CrawlerService(settings) as crawler:
        return await crawler.discover_urls(target_url, on_progress)


async def fetch_page_content(url: str, *, settings: Settings | None = None) -> PageContent:
    """One-shot page fetch with a temporary client."""
    async with CrawlerService(settings) as crawler:
        return await crawler.fetch_page_content(url)
