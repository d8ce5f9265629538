"""HTML parsing: editorial text extraction and same-origin link extraction."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import PageContent
from .urls import canonical_url, is_resource_url, url_origin


logger = logging.getLogger(__name__)

# Boilerplate that is never editorial copy
NON_CONTENT_SELECTOR = "script, style, noscript, iframe, svg, header, footer, nav, aside"

_WHITESPACE_RE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_html_content(html: str, source_url: str) -> PageContent:
    """Parse raw HTML into normalized page content.

    Non-content elements are removed before text extraction. The meta
    description, when present, is placed ahead of the body text so it is
    analyzed even when the body is a near-empty JS shell.

    Args:
        html: Raw HTML document
        source_url: URL the HTML came from (title fallback)

    Returns:
        PageContent with the original ``html`` untouched
    """
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.select(NON_CONTENT_SELECTOR):
        element.decompose()

    title = ""
    if soup.title is not None:
        title = _collapse(soup.title.get_text(" "))
    if not title:
        title = source_url

    meta_description = ""
    meta = soup.find("meta", attrs={"name": "description"})
    if meta is not None:
        content = meta.get("content") or ""
        if isinstance(content, list):
            content = " ".join(content)
        meta_description = content.strip()

    container = soup.body
    if container is None:
        # Head text (title included) is never body copy
        if soup.head is not None:
            soup.head.decompose()
        container = soup
    body_text = _collapse(container.get_text(" "))

    text = f"{meta_description}\n\n{body_text}" if meta_description else body_text
    logger.debug(f"Parsed {source_url}: title={title!r}, {len(text)} chars of text")
    return PageContent(text=text, html=html, title=title)


def extract_links(html: str, base_url: str) -> set[str]:
    """Extract canonical same-origin page links from anchors.

    Links with a fragment or pointing at binary/document resources are
    dropped. Malformed hrefs are skipped.

    Args:
        html: HTML content
        base_url: Base URL for resolving relative links

    Returns:
        Set of absolute URLs
    """
    base_origin = url_origin(base_url)
    if base_origin is None:
        logger.debug(f"Cannot extract links: {base_url!r} has no origin")
        return set()

    soup = BeautifulSoup(html, "html.parser")
    links: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        # BeautifulSoup can return list for attribute values, ensure it's a string
        if isinstance(href, list):
            href = href[0] if href else ""
        href = href.strip()
        if not href:
            continue

        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            logger.debug(f"Skipping malformed href {href!r} on {base_url}")
            continue

        if "#" in absolute:
            continue
        if url_origin(absolute) != base_origin:
            continue
        if is_resource_url(absolute):
            continue
        links.add(canonical_url(absolute))

    return links
