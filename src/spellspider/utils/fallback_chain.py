"""Ordered fallback chain: try strategies in order, first validated result wins.

The same loop drives the page fetch cascade, the sitemap fetch cascade and the
discovery phases. Each strategy is an async callable; its result is checked by
a validator that returns a FailureReason to reject it or None to accept it.
Rejections and exceptions are recorded and the next strategy is tried. Once a
strategy is accepted no later strategy runs.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Generic, TypeVar

from .models import FailureReason, SpellSpiderError, StrategyFailure
from .retrying_fetcher import FetchExhausted


logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator = Callable[[T], FailureReason | None]


class StrategyRejected(SpellSpiderError):
    """Raised from inside a strategy to fail it with a specific reason."""

    def __init__(self, reason: FailureReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(detail or reason.value)


class FallbackExhausted(SpellSpiderError):
    """Raised when every strategy in a chain failed."""

    def __init__(self, failures: Sequence[StrategyFailure], message: str | None = None):
        self.failures = list(failures)
        if message is None:
            tried = "; ".join(str(failure) for failure in self.failures) or "no strategies"
            message = f"All {len(self.failures)} strategies failed: {tried}"
        super().__init__(message)


@dataclass(slots=True, frozen=True)
class Strategy(Generic[T]):
    """One named way of producing a value.

    ``validate`` overrides the chain-level validator for this strategy.
    ``delay_before_ms`` is slept before the strategy runs, but only if an
    earlier strategy has already failed.
    """

    name: str
    run: Callable[[], Awaitable[T]]
    validate: Validator | None = None
    delay_before_ms: int = 0


def _failure_from_exception(name: str, exc: Exception) -> StrategyFailure:
    if isinstance(exc, StrategyRejected):
        return StrategyFailure(name, exc.reason, exc.detail)
    if isinstance(exc, FetchExhausted):
        return StrategyFailure(name, exc.reason, str(exc.last_error))
    if isinstance(exc, FallbackExhausted):
        return StrategyFailure(name, FailureReason.NO_RESULTS, str(exc))
    return StrategyFailure(name, FailureReason.EXCEPTION, f"{type(exc).__name__}: {exc}")


async def run_fallback_chain(
    strategies: Sequence[Strategy[T]],
    *,
    validator: Validator | None = None,
    on_attempt: Callable[[Strategy[T]], None] | None = None,
    label: str = "chain",
) -> tuple[Strategy[T], T]:
    """Run ``strategies`` strictly in order and return the first accepted result.

    Args:
        strategies: Ordered strategies; order is the fallback preference
        validator: Default validator for strategies without their own
        on_attempt: Called with each strategy right before it runs
        label: Prefix for log lines

    Returns:
        Tuple of (winning strategy, its value)

    Raises:
        FallbackExhausted: With one StrategyFailure per strategy tried
    """
    failures: list[StrategyFailure] = []

    for strategy in strategies:
        if failures and strategy.delay_before_ms > 0:
            await asyncio.sleep(strategy.delay_before_ms / 1000.0)

        if on_attempt is not None:
            on_attempt(strategy)

        logger.debug(f"[{label}] Trying {strategy.name}")
        try:
            value = await strategy.run()
        except Exception as exc:
            failure = _failure_from_exception(strategy.name, exc)
            logger.warning(f"[{label}] {failure}")
            failures.append(failure)
            continue

        check = strategy.validate or validator
        reason = check(value) if check is not None else None
        if reason is not None:
            failure = StrategyFailure(strategy.name, reason, "response rejected by validation")
            logger.warning(f"[{label}] {failure}")
            failures.append(failure)
            continue

        logger.info(f"[{label}] Succeeded via {strategy.name}")
        return strategy, value

    raise FallbackExhausted(failures)
