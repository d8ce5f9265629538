"""Recursive sitemap resolution through the proxy cascade.

Root candidates are tried in order until one yields page URLs. Sitemap
indexes are expanded concurrently; a run-scoped visited set stops cycles and
the depth and document bounds stop runaway chains.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging

from lxml import etree  # type: ignore[import-untyped]

from .fallback_chain import FallbackExhausted, Strategy
from .progress import DiscoveryStatus, ProgressCallback, ProgressReporter, last_path_segment
from .proxy_cascade import DIRECT_STRATEGY, ProxyCascade, sitemap_body_validator
from .urls import is_resource_url, is_same_origin, require_origin


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ParsedSitemap:
    """Locations found in one sitemap document."""

    nested_sitemaps: list[str] = field(default_factory=list)
    page_urls: list[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.nested_sitemaps)


def _loc_values(root, parent_tag: str) -> list[str]:
    values: list[str] = []
    for parent in root.iter(f"{{*}}{parent_tag}"):
        for loc in parent.findall("{*}loc"):
            text = (loc.text or "").strip()
            if text:
                values.append(text)
    return values


def parse_sitemap_xml(xml_text: str) -> ParsedSitemap:
    """Parse a urlset or sitemapindex document.

    Malformed XML yields an empty result rather than an error.
    """
    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_text.encode("utf-8"), parser)
    except (etree.LxmlError, ValueError) as e:
        logger.warning(f"XML parsing error for sitemap: {e}")
        return ParsedSitemap()

    if root is None:
        logger.warning("Sitemap body did not contain an XML document")
        return ParsedSitemap()

    return ParsedSitemap(
        nested_sitemaps=_loc_values(root, "sitemap"),
        page_urls=_loc_values(root, "url"),
    )


@dataclass(slots=True)
class _ResolveRun:
    origin: str
    reporter: ProgressReporter
    visited: set[str] = field(default_factory=set)


class SitemapResolver:
    """Resolve a site's sitemap family into a flat set of page URLs."""

    def __init__(self, cascade: ProxyCascade):
        self.cascade = cascade
        self.settings = cascade.settings

    async def resolve_sitemap_urls(self, target_url: str, on_progress: ProgressCallback | None = None) -> set[str]:
        """Find page URLs for ``target_url``'s origin via its sitemaps.

        Returns:
            Same-origin, non-resource page URLs from the first candidate root
            sitemap that yields any; empty when none does
        """
        run = _ResolveRun(origin=require_origin(target_url), reporter=ProgressReporter(on_progress))

        for path in self.settings.get_sitemap_paths():
            candidate = f"{run.origin}{path}"
            run.reporter.emit(DiscoveryStatus.CHECKING_SITEMAP_CANDIDATE, name=last_path_segment(candidate))
            urls = await self._resolve(candidate, run, depth=0)
            if urls:
                found = set(urls)
                logger.info(f"Sitemap {candidate} yielded {len(found)} URLs ({len(run.visited)} documents fetched)")
                return found
            logger.info(f"Sitemap candidate {candidate} yielded no URLs")

        return set()

    async def _resolve(self, sitemap_url: str, run: _ResolveRun, depth: int) -> list[str]:
        if sitemap_url in run.visited:
            logger.debug(f"Skipping already visited sitemap: {sitemap_url}")
            return []
        if depth > self.settings.max_sitemap_depth:
            logger.warning(f"Skipping {sitemap_url}: nesting depth {depth} exceeds {self.settings.max_sitemap_depth}")
            return []
        if len(run.visited) >= self.settings.max_sitemap_documents:
            logger.warning(f"Skipping {sitemap_url}: sitemap document limit {self.settings.max_sitemap_documents} reached")
            return []

        # Marked before the fetch so concurrent siblings never enter the same URL
        run.visited.add(sitemap_url)

        run.reporter.emit(DiscoveryStatus.PARSING_SITEMAP, name=last_path_segment(sitemap_url))
        xml_text = await self._fetch_xml(sitemap_url, run.reporter)
        if xml_text is None:
            return []

        parsed = parse_sitemap_xml(xml_text)

        if parsed.is_index:
            run.reporter.emit(DiscoveryStatus.NESTED_SITEMAP_FOUND, count=len(parsed.nested_sitemaps))
            results = await asyncio.gather(
                *(self._resolve(nested, run, depth + 1) for nested in parsed.nested_sitemaps),
                return_exceptions=True,
            )
            flattened: list[str] = []
            for nested, result in zip(parsed.nested_sitemaps, results):
                if isinstance(result, BaseException):
                    logger.warning(f"Nested sitemap {nested} failed: {result}")
                    continue
                flattened.extend(result)
            return flattened

        kept = [
            url for url in parsed.page_urls if is_same_origin(run.origin, url) and not is_resource_url(url)
        ]
        logger.debug(f"Sitemap {sitemap_url}: kept {len(kept)} of {len(parsed.page_urls)} URLs")
        return kept

    async def _fetch_xml(self, sitemap_url: str, reporter: ProgressReporter) -> str | None:
        def announce(strategy: Strategy[str]) -> None:
            if strategy.name == DIRECT_STRATEGY:
                reporter.emit(DiscoveryStatus.TRYING_DIRECT)
            else:
                reporter.emit(DiscoveryStatus.TRYING_PROXY, proxy=strategy.name)

        try:
            _strategy, body = await self.cascade.fetch_text(
                sitemap_url,
                direct_validator=sitemap_body_validator,
                proxy_validator=sitemap_body_validator,
                on_attempt=announce,
                label="sitemap",
            )
        except FallbackExhausted as exc:
            logger.warning(f"All attempts failed for sitemap {sitemap_url}: {[str(f) for f in exc.failures]}")
            return None
        return body
