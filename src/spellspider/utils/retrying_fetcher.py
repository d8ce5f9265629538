"""Single-URL HTTP GET with bounded retries and linear backoff."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .models import FailureReason, SpellSpiderError


logger = logging.getLogger(__name__)


class FetchExhausted(SpellSpiderError):
    """Raised when every attempt of fetch_with_retry failed.

    Carries the reason and the underlying error of the final attempt.
    """

    def __init__(self, url: str, attempts: int, reason: FailureReason, last_error: Exception):
        self.url = url
        self.attempts = attempts
        self.reason = reason
        self.last_error = last_error
        super().__init__(f"{url} failed after {attempts} attempt(s): {last_error}")


def classify_error(error: Exception) -> FailureReason:
    """Map an httpx failure onto the failure taxonomy."""
    if isinstance(error, httpx.TimeoutException):
        return FailureReason.TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return FailureReason.HTTP_ERROR
    return FailureReason.NETWORK_ERROR


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    max_attempts: int = 2,
    base_delay_ms: int = 1000,
) -> httpx.Response:
    """GET ``url`` up to ``max_attempts`` times.

    A non-2xx status or a transport error (timeout, connection failure) counts
    as a failed attempt. Between attempts the call sleeps
    ``base_delay_ms * attempt`` milliseconds (attempt numbering starts at 1);
    there is no sleep after the final attempt and no jitter.

    Args:
        client: Shared HTTP client
        url: Absolute URL to fetch
        max_attempts: Attempt budget, at least 1
        base_delay_ms: Backoff base in milliseconds

    Returns:
        The first successful (2xx) response

    Raises:
        FetchExhausted: When every attempt failed
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            response = await client.get(url)
            if response.is_success:
                logger.debug(f"GET {url} -> {response.status_code} (attempt {attempt}/{max_attempts})")
                return response
            last_error = httpx.HTTPStatusError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                request=response.request,
                response=response,
            )
        except httpx.HTTPError as exc:
            last_error = exc

        logger.debug(f"GET {url} failed (attempt {attempt}/{max_attempts}): {last_error}")

        if attempt < max_attempts:
            await asyncio.sleep(base_delay_ms * attempt / 1000.0)

    assert last_error is not None
    raise FetchExhausted(url, max_attempts, classify_error(last_error), last_error)
