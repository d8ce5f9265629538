"""Single-page fetch through the proxy cascade, parsed into PageContent."""

from __future__ import annotations

import logging

from .fallback_chain import FallbackExhausted
from .html_content import parse_html_content
from .models import PageContent
from .proxy_cascade import ProxyCascade, min_length_validator, page_body_validator


logger = logging.getLogger(__name__)


class PageUnreachable(FallbackExhausted):
    """Raised when the direct fetch and every relay failed for a page."""

    def __init__(self, url: str, exhausted: FallbackExhausted, strategy_count: int):
        self.url = url
        message = (
            f"Unable to access {url} after trying {strategy_count} methods. "
            "The website may have strong anti-bot protection or all proxy services "
            "are temporarily unavailable."
        )
        super().__init__(exhausted.failures, message)


class PageFetcher:
    """Fetch one page: direct attempt, then relays, first valid body wins."""

    def __init__(self, cascade: ProxyCascade):
        self.cascade = cascade

    async def fetch_page_content(self, url: str) -> PageContent:
        """Fetch ``url`` and parse it.

        The direct body only has to be long enough; relay bodies must also be
        free of blocked-access markers.

        Raises:
            PageUnreachable: With the per-strategy failure list
        """
        min_length = self.cascade.settings.min_body_length
        try:
            strategy_name, html = await self.cascade.fetch_text(
                url,
                direct_validator=min_length_validator(min_length),
                proxy_validator=page_body_validator(min_length),
                label="page",
            )
        except FallbackExhausted as exc:
            logger.error(
                f"All fetch strategies exhausted for {url}",
                extra={"url": url, "failures": [failure.to_dict() for failure in exc.failures]},
            )
            raise PageUnreachable(url, exc, self.cascade.strategy_count) from exc

        logger.info(f"Fetched {url} via {strategy_name} ({len(html)} chars)")
        return parse_html_content(html, url)
