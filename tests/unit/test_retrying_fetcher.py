"""Unit tests for fetch_with_retry."""

from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from spellspider.utils.models import FailureReason
from spellspider.utils.retrying_fetcher import FetchExhausted, classify_error, fetch_with_retry


URL = "https://example.com/page"


def _client_from(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
class TestFetchWithRetry:
    async def test_always_failing_fetch_makes_exactly_max_attempts(self):
        client = AsyncMock(spec=httpx.AsyncClient)
        errors = [httpx.ConnectError(f"refused #{n}") for n in range(1, 4)]
        client.get.side_effect = errors

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(FetchExhausted) as exc_info:
                await fetch_with_retry(client, URL, max_attempts=3, base_delay_ms=100)

        assert client.get.await_count == 3
        assert exc_info.value.last_error is errors[-1]
        assert exc_info.value.attempts == 3
        assert exc_info.value.reason == FailureReason.NETWORK_ERROR
        assert "refused #3" in str(exc_info.value)
        # Linear backoff between attempts, none after the last
        assert mock_sleep.await_args_list == [call(0.1), call(0.2)]

    async def test_returns_first_success_without_further_attempts(self):
        statuses = iter([503, 200, 200])
        seen: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            seen.append(status)
            return httpx.Response(status, text="ok" if status == 200 else "unavailable")

        async with _client_from(handler) as client:
            with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
                response = await fetch_with_retry(client, URL, max_attempts=3, base_delay_ms=500)

        assert response.text == "ok"
        assert seen == [503, 200]
        mock_sleep.assert_awaited_once_with(0.5)

    async def test_non_2xx_is_reported_as_http_error(self):
        async with _client_from(lambda request: httpx.Response(500, text="boom")) as client:
            with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
                with pytest.raises(FetchExhausted) as exc_info:
                    await fetch_with_retry(client, URL, max_attempts=1, base_delay_ms=1000)

        assert exc_info.value.reason == FailureReason.HTTP_ERROR
        assert isinstance(exc_info.value.last_error, httpx.HTTPStatusError)
        mock_sleep.assert_not_awaited()

    async def test_timeout_is_classified(self):
        client = AsyncMock(spec=httpx.AsyncClient)
        client.get.side_effect = httpx.ReadTimeout("slow upstream")

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(FetchExhausted) as exc_info:
                await fetch_with_retry(client, URL, max_attempts=2, base_delay_ms=10)

        assert exc_info.value.reason == FailureReason.TIMEOUT
        assert client.get.await_count == 2

    async def test_rejects_zero_attempts(self):
        client = AsyncMock(spec=httpx.AsyncClient)

        with pytest.raises(ValueError):
            await fetch_with_retry(client, URL, max_attempts=0)

        client.get.assert_not_awaited()


def test_classify_error_defaults_to_network_error():
    assert classify_error(httpx.ConnectError("x")) == FailureReason.NETWORK_ERROR
    assert classify_error(httpx.ConnectTimeout("x")) == FailureReason.TIMEOUT
