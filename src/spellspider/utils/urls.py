"""URL helpers shared by link extraction, sitemap filtering and discovery."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit, urlunsplit

from .models import SpellSpiderError


logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}

# Binary/document payloads that are never worth grammar-checking
RESOURCE_EXTENSIONS = (".pdf", ".jpg", ".png", ".gif", ".zip")


class InvalidTargetUrl(SpellSpiderError, ValueError):
    """Raised when a target cannot be interpreted as an http(s) URL."""


def url_origin(url: str) -> str | None:
    """Return the scheme://host[:port] origin of ``url`` or None if it has none.

    Default ports are dropped so ``https://a.com:443`` and ``https://a.com``
    share an origin.
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if scheme not in DEFAULT_PORTS or not host:
        return None

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def canonical_url(url: str) -> str | None:
    """Rebuild ``url`` on its canonical origin, with an empty path as ``/``.

    Fragments and userinfo are dropped. Returns None when ``url`` has no
    http(s) origin.
    """
    origin = url_origin(url)
    if origin is None:
        return None
    parsed = urlsplit(url)
    scheme, netloc = origin.split("://", 1)
    return urlunsplit((scheme, netloc, parsed.path or "/", parsed.query, ""))


def is_same_origin(base: str, other: str) -> bool:
    base_origin = url_origin(base)
    return base_origin is not None and base_origin == url_origin(other)


def is_resource_url(url: str) -> bool:
    """Check whether the URL path ends in a binary/document extension."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return path.lower().endswith(RESOURCE_EXTENSIONS)


def require_origin(url: str) -> str:
    """Return the origin of ``url`` or raise InvalidTargetUrl."""
    origin = url_origin(url)
    if origin is None:
        raise InvalidTargetUrl(f"Cannot determine origin for URL: {url!r}")
    return origin


def normalize_target_url(raw: str) -> str:
    """Turn user input into an absolute http(s) URL.

    Input without a scheme is assumed to be https; a bare host gets a
    trailing ``/`` path.
    """
    cleaned = (raw or "").strip()
    if not cleaned:
        raise InvalidTargetUrl("Target URL is empty")

    if not cleaned.lower().startswith(("http://", "https://")):
        cleaned = f"https://{cleaned.lstrip('/')}"

    try:
        parsed = urlsplit(cleaned)
    except ValueError as exc:
        raise InvalidTargetUrl(f"Cannot parse URL: {raw!r}") from exc

    if not parsed.hostname:
        raise InvalidTargetUrl(f"Cannot determine host for URL: {raw!r}")

    path = parsed.path or "/"
    normalized = urlunsplit((parsed.scheme.lower(), parsed.netloc, path, parsed.query, ""))
    logger.debug(f"Normalized target {raw!r} -> {normalized}")
    return normalized
