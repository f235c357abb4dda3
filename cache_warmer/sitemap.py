"""Sitemap discovery: index sitemap -> child sitemaps -> page URLs."""

from __future__ import annotations

import asyncio
import logging
from typing import List

import httpx
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from lxml import etree

from .config import Settings
from .http_client import fetch_text
from .models import DomainTarget

logger = logging.getLogger(__name__)


def _locs(xml: str, root_tag: str, entry_tag: str) -> List[str]:
    """Collect <loc> values of every entry directly under the root element."""
    try:
        soup = BeautifulSoup(xml, "xml")
    except (ParserRejectedMarkup, etree.LxmlError) as exc:
        raise ValueError(f"Unparseable sitemap XML: {exc}") from exc
    root = soup.find(root_tag)
    if root is None:
        raise ValueError(f"No <{root_tag}> element in sitemap XML.")

    out: List[str] = []
    for entry in root.find_all(entry_tag, recursive=False):
        loc = entry.find("loc", recursive=False)
        text = loc.get_text(strip=True) if loc is not None else ""
        if text:
            out.append(text)
    return out


def parse_sitemap_index(xml: str) -> List[str]:
    """Return the child sitemap URLs listed in a sitemap index.

    Raises:
        ValueError: If the document has no <sitemapindex> root.
    """
    return _locs(xml, "sitemapindex", "sitemap")


def parse_urlset(xml: str) -> List[str]:
    """Return the page URLs listed in a urlset sitemap.

    Raises:
        ValueError: If the document has no <urlset> root.
    """
    return _locs(xml, "urlset", "url")


async def fetch_index_sitemaps(
    client: httpx.AsyncClient, target: DomainTarget, settings: Settings
) -> List[str]:
    """Fetch the domain's sitemap index. Returns [] on any failure."""
    url = target.sitemap_index_url
    try:
        xml = await fetch_text(client, url, timeout=settings.sitemap_timeout)
        return parse_sitemap_index(xml)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.warning(
            "[%s] Sitemap index unavailable (%s): %s", target.key, url, exc
        )
        return []


async def fetch_urls_from_sitemap(
    client: httpx.AsyncClient,
    sitemap_url: str,
    target: DomainTarget,
    settings: Settings,
) -> List[str]:
    """Fetch one child sitemap. Returns [] on any failure."""
    try:
        xml = await fetch_text(client, sitemap_url, timeout=settings.sitemap_timeout)
        return parse_urlset(xml)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.warning(
            "[%s] Sitemap unavailable (%s): %s", target.key, sitemap_url, exc
        )
        return []


async def resolve_urls(
    client: httpx.AsyncClient, target: DomainTarget, settings: Settings
) -> List[str]:
    """Resolve every page URL of a domain, in sitemap order.

    Child sitemaps are fetched concurrently. Duplicates across sitemaps are
    kept.
    """
    sitemaps = await fetch_index_sitemaps(client, target, settings)
    logger.debug("[%s] %d child sitemap(s)", target.key, len(sitemaps))

    per_sitemap = await asyncio.gather(
        *(fetch_urls_from_sitemap(client, s, target, settings) for s in sitemaps)
    )
    return [url for urls in per_sitemap for url in urls if url]
