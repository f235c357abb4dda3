"""Tests for sitemap parsing and resolution."""

import asyncio

import httpx
import pytest

from cache_warmer.sitemap import (
    fetch_index_sitemaps,
    fetch_urls_from_sitemap,
    parse_sitemap_index,
    parse_urlset,
    resolve_urls,
)

INDEX_URL = "https://example.com/sitemap_index.xml"
POST_URL = "https://example.com/post-sitemap.xml"
PAGE_URL = "https://example.com/page-sitemap.xml"


def _xml(body: str) -> httpx.Response:
    return httpx.Response(200, text=body, headers={"content-type": "application/xml"})


class TestParseSitemapIndex:
    def test_multiple_children(self, sitemap_index_xml: str) -> None:
        assert parse_sitemap_index(sitemap_index_xml) == [POST_URL, PAGE_URL]

    def test_single_child(self, single_sitemap_index_xml: str) -> None:
        assert parse_sitemap_index(single_sitemap_index_xml) == [PAGE_URL]

    def test_without_namespace(self) -> None:
        xml = "<sitemapindex><sitemap><loc>https://a.example/s.xml</loc></sitemap></sitemapindex>"
        assert parse_sitemap_index(xml) == ["https://a.example/s.xml"]

    def test_empty_index(self) -> None:
        assert parse_sitemap_index("<sitemapindex></sitemapindex>") == []

    def test_urlset_is_not_an_index(self, page_sitemap_xml: str) -> None:
        with pytest.raises(ValueError, match="sitemapindex"):
            parse_sitemap_index(page_sitemap_xml)

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_sitemap_index("<html><body>Not a sitemap</body></html>")


class TestParseUrlset:
    def test_extracts_page_locs_only(self, post_sitemap_xml: str) -> None:
        assert parse_urlset(post_sitemap_xml) == [
            "https://example.com/blog/first/",
            "https://example.com/blog/second/",
        ]

    def test_blank_locs_dropped(self, page_sitemap_xml: str) -> None:
        assert parse_urlset(page_sitemap_xml) == [
            "https://example.com/",
            "https://example.com/about/",
        ]

    def test_entry_without_loc_skipped(self) -> None:
        xml = "<urlset><url><lastmod>2026-01-01</lastmod></url><url><loc>https://a.example/</loc></url></urlset>"
        assert parse_urlset(xml) == ["https://a.example/"]

    def test_missing_root_raises(self, sitemap_index_xml: str) -> None:
        with pytest.raises(ValueError, match="urlset"):
            parse_urlset(sitemap_index_xml)


class TestResolveUrls:
    def test_happy_path(
        self, fake_http, target, settings, sitemap_index_xml, post_sitemap_xml, page_sitemap_xml
    ) -> None:
        fake_http.route(INDEX_URL, _xml(sitemap_index_xml))
        fake_http.route(POST_URL, _xml(post_sitemap_xml))
        fake_http.route(PAGE_URL, _xml(page_sitemap_xml))

        async def go():
            async with fake_http.client() as client:
                return await resolve_urls(client, target, settings)

        assert asyncio.run(go()) == [
            "https://example.com/blog/first/",
            "https://example.com/blog/second/",
            "https://example.com/",
            "https://example.com/about/",
        ]

    def test_missing_index_returns_empty(self, fake_http, target, settings) -> None:
        async def go():
            async with fake_http.client() as client:
                return await resolve_urls(client, target, settings)

        assert asyncio.run(go()) == []
        assert len(fake_http.calls_to(INDEX_URL)) == 1

    def test_network_error_returns_empty(self, fake_http, target, settings) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        fake_http.route(INDEX_URL, boom)

        async def go():
            async with fake_http.client() as client:
                return await fetch_index_sitemaps(client, target, settings)

        assert asyncio.run(go()) == []

    def test_malformed_index_returns_empty(self, fake_http, target, settings) -> None:
        fake_http.route(INDEX_URL, _xml("<<< definitely not xml"))

        async def go():
            async with fake_http.client() as client:
                return await resolve_urls(client, target, settings)

        assert asyncio.run(go()) == []

    def test_failed_child_contributes_nothing(
        self, fake_http, target, settings, sitemap_index_xml, page_sitemap_xml
    ) -> None:
        fake_http.route(INDEX_URL, _xml(sitemap_index_xml))
        fake_http.route(POST_URL, httpx.Response(500, text="oops"))
        fake_http.route(PAGE_URL, _xml(page_sitemap_xml))

        async def go():
            async with fake_http.client() as client:
                return await resolve_urls(client, target, settings)

        assert asyncio.run(go()) == ["https://example.com/", "https://example.com/about/"]

    def test_duplicates_across_sitemaps_kept(self, fake_http, target, settings, sitemap_index_xml) -> None:
        same = "<urlset><url><loc>https://example.com/</loc></url></urlset>"
        fake_http.route(INDEX_URL, _xml(sitemap_index_xml))
        fake_http.route(POST_URL, _xml(same))
        fake_http.route(PAGE_URL, _xml(same))

        async def go():
            async with fake_http.client() as client:
                return await resolve_urls(client, target, settings)

        assert asyncio.run(go()) == ["https://example.com/", "https://example.com/"]

    def test_child_fetch_error_returns_empty(self, fake_http, target, settings) -> None:
        def reset(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadError("connection reset", request=request)

        fake_http.route(POST_URL, reset)

        async def go():
            async with fake_http.client() as client:
                return await fetch_urls_from_sitemap(client, POST_URL, target, settings)

        assert asyncio.run(go()) == []
