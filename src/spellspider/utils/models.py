"""Data model for the crawler core: proxies, fetch outcomes and page content."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class SpellSpiderError(Exception):
    """Base error for spellspider."""


class FailureReason(str, Enum):
    """Why a single fetch strategy did not produce usable content."""

    TIMEOUT = "timeout"
    HTTP_ERROR = "http-error"
    NETWORK_ERROR = "network-error"
    EMPTY_BODY = "empty-body"
    ACCESS_DENIED_PAGE = "access-denied-page"
    INVALID_CONTENT = "invalid-content"
    NO_RESULTS = "no-results"
    EXCEPTION = "exception"


@dataclass(slots=True, frozen=True)
class ProxyConfig:
    """A public CORS relay: a name and a function mapping a target URL to the relay URL."""

    name: str
    generator: Callable[[str], str]

    def build_url(self, target_url: str) -> str:
        return self.generator(target_url)


@dataclass(slots=True, frozen=True)
class StrategyFailure:
    """Diagnostic record for one strategy that was tried and failed."""

    strategy: str
    reason: FailureReason
    detail: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"strategy": self.strategy, "reason": self.reason.value, "detail": self.detail}

    def __str__(self) -> str:
        if self.detail:
            return f"{self.strategy}: {self.reason.value} ({self.detail})"
        return f"{self.strategy}: {self.reason.value}"


@dataclass(slots=True, frozen=True)
class PageContent:
    """Normalized content of one fetched page.

    ``text`` feeds the analysis pipeline; ``html`` is kept for link extraction.
    """

    text: str
    html: str
    title: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())
