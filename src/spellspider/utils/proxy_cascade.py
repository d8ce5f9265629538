"""Direct-then-relay fetch cascade for third-party pages.

Targets are fetched directly first; if that fails or the body does not
validate, each public CORS relay is tried in its declared order. Relay order
is a quality-over-speed preference and is never shuffled.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
from urllib.parse import quote

import httpx

from ..config import Settings
from .fallback_chain import Strategy, Validator, run_fallback_chain
from .models import FailureReason, ProxyConfig
from .retrying_fetcher import fetch_with_retry


logger = logging.getLogger(__name__)

DIRECT_STRATEGY = "Direct"

# Markers of a relay that was itself blocked or rate-limited upstream
ACCESS_DENIED_MARKERS = ("Access Denied", "403 Forbidden")

# Any one of these means the body is sitemap XML rather than an HTML error page
SITEMAP_MARKERS = ("<?xml", "<urlset", "<sitemapindex")


def _encode(target: str) -> str:
    # Mirrors JavaScript's encodeURIComponent
    return quote(target, safe="!~*'()")


DEFAULT_PROXIES: tuple[ProxyConfig, ...] = (
    ProxyConfig("AllOrigins", lambda target: f"https://api.allorigins.win/raw?url={_encode(target)}"),
    ProxyConfig("CorsProxy", lambda target: f"https://corsproxy.io/?{_encode(target)}"),
    ProxyConfig("ThingProxy", lambda target: f"https://thingproxy.freeboard.io/fetch/{_encode(target)}"),
    ProxyConfig("ProxyCors", lambda target: f"https://proxy.cors.sh/{target}"),
)


def min_length_validator(min_length: int) -> Validator:
    """Reject bodies that are not strictly longer than ``min_length``."""

    def validate(body: str) -> FailureReason | None:
        if not body or len(body) <= min_length:
            return FailureReason.EMPTY_BODY
        return None

    return validate


def page_body_validator(min_length: int) -> Validator:
    """Relay bodies must be long enough and must not be a blocked-access page."""
    check_length = min_length_validator(min_length)

    def validate(body: str) -> FailureReason | None:
        reason = check_length(body)
        if reason is not None:
            return reason
        if any(marker in body for marker in ACCESS_DENIED_MARKERS):
            return FailureReason.ACCESS_DENIED_PAGE
        return None

    return validate


def sitemap_body_validator(body: str) -> FailureReason | None:
    if not body:
        return FailureReason.EMPTY_BODY
    if not any(marker in body for marker in SITEMAP_MARKERS):
        return FailureReason.INVALID_CONTENT
    return None


class ProxyCascade:
    """Fetches text bodies through the direct strategy and then each relay."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        proxies: Sequence[ProxyConfig] = DEFAULT_PROXIES,
    ):
        self.client = client
        self.settings = settings
        self.proxies = tuple(proxies)

    @property
    def strategy_count(self) -> int:
        return len(self.proxies) + 1

    def build_strategies(
        self,
        url: str,
        *,
        direct_validator: Validator,
        proxy_validator: Validator,
    ) -> list[Strategy[str]]:
        """Build the ordered strategy list for ``url``: direct first, then relays."""
        settings = self.settings
        strategies: list[Strategy[str]] = [
            Strategy(
                name=DIRECT_STRATEGY,
                run=self._fetcher(url, settings.direct_max_attempts, settings.direct_backoff_ms),
                validate=direct_validator,
            )
        ]
        for index, proxy in enumerate(self.proxies):
            strategies.append(
                Strategy(
                    name=proxy.name,
                    run=self._fetcher(proxy.build_url(url), settings.proxy_max_attempts, settings.proxy_backoff_ms),
                    validate=proxy_validator,
                    delay_before_ms=settings.inter_proxy_delay_ms if index > 0 else 0,
                )
            )
        return strategies

    async def fetch_text(
        self,
        url: str,
        *,
        direct_validator: Validator,
        proxy_validator: Validator,
        on_attempt: Callable[[Strategy[str]], None] | None = None,
        label: str = "fetch",
    ) -> tuple[str, str]:
        """Fetch ``url`` through the cascade.

        Returns:
            Tuple of (strategy name, validated body)

        Raises:
            FallbackExhausted: When neither the direct fetch nor any relay validated
        """
        strategies = self.build_strategies(url, direct_validator=direct_validator, proxy_validator=proxy_validator)
        strategy, body = await run_fallback_chain(strategies, on_attempt=on_attempt, label=label)
        return strategy.name, body

    def _fetcher(self, request_url: str, max_attempts: int, backoff_ms: int):
        async def run() -> str:
            response = await fetch_with_retry(self.client, request_url, max_attempts, backoff_ms)
            return response.text

        return run
