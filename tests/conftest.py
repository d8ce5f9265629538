"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import httpx
import pytest
import pytest_asyncio


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# Test environment that overrides every config value a developer shell might set
TEST_ENV = {
    "HTTP_TIMEOUT": "5",
    "DIRECT_MAX_ATTEMPTS": "1",
    "PROXY_MAX_ATTEMPTS": "2",
    "SITEMAP_PATHS": "/sitemap.xml,/sitemap_index.xml,/page-sitemap.xml",
    "GEMINI_API_KEY": "",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

# Now we can safely import config-dependent modules
from spellspider.config import Settings
from spellspider.services.crawler_service import CrawlerService
from spellspider.utils.proxy_cascade import ProxyCascade
from tests.fixtures.fake_web import FakeWeb


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings() -> Settings:
    """Settings with every delay zeroed so retry paths run instantly."""
    return Settings(
        _env_file=None,
        direct_backoff_ms=0,
        proxy_backoff_ms=0,
        inter_proxy_delay_ms=0,
    )


@pytest.fixture
def fake_web() -> FakeWeb:
    return FakeWeb()


@pytest_asyncio.fixture
async def mock_client(fake_web):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_web.handler)) as client:
        yield client


@pytest.fixture
def cascade(mock_client, settings, fake_web) -> ProxyCascade:
    return ProxyCascade(mock_client, settings, fake_web.proxies)


@pytest_asyncio.fixture
async def crawler(mock_client, settings, fake_web):
    async with CrawlerService(settings, proxies=fake_web.proxies, client=mock_client) as service:
        yield service
