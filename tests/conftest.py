"""Shared test fixtures for cache warmer tests."""

from typing import Callable, Dict, List, Union

import httpx
import pytest

from cache_warmer.config import Settings
from cache_warmer.models import DomainTarget

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeHTTP:
    """Routes requests by exact URL to canned responses; unknown URLs get 404."""

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def route(self, url: str, response: Route) -> None:
        self.routes[url] = response

    def calls_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)


class FakePurger:
    """Stands in for PurgeClient and records purged URLs."""

    def __init__(self) -> None:
        self.purged: List[str] = []

    @property
    def enabled(self) -> bool:
        return True

    async def purge(self, url: str) -> bool:
        self.purged.append(url)
        return True


@pytest.fixture
def fake_http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture
def fake_purger() -> FakePurger:
    return FakePurger()


@pytest.fixture
def settings() -> Settings:
    """Settings with no external services and no waiting."""
    return Settings(
        apps_script_url=None,
        brd_proxy_id=None,
        cloudflare_zone_id=None,
        cloudflare_api_token=None,
        retry_wait_seconds=0,
        batch_delay_seconds=0,
    )


@pytest.fixture
def target() -> DomainTarget:
    return DomainTarget(
        key="id",
        base_url="https://example.com",
        user_agent="TestWarmer/1.0",
    )


@pytest.fixture
def sitemap_index_xml() -> str:
    """Sitemap index listing two child sitemaps."""
    return """<?xml version="1.0" encoding="UTF-8"?>
    <sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <sitemap>
            <loc>https://example.com/post-sitemap.xml</loc>
            <lastmod>2026-01-01T00:00:00+00:00</lastmod>
        </sitemap>
        <sitemap>
            <loc>https://example.com/page-sitemap.xml</loc>
        </sitemap>
    </sitemapindex>
    """


@pytest.fixture
def single_sitemap_index_xml() -> str:
    """Sitemap index with exactly one child."""
    return """<?xml version="1.0" encoding="UTF-8"?>
    <sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <sitemap><loc>https://example.com/page-sitemap.xml</loc></sitemap>
    </sitemapindex>
    """


@pytest.fixture
def post_sitemap_xml() -> str:
    return """<?xml version="1.0" encoding="UTF-8"?>
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"
            xmlns:image="http://www.google.com/schemas/sitemap-image/1.1">
        <url>
            <loc>https://example.com/blog/first/</loc>
            <image:image><image:loc>https://example.com/a.jpg</image:loc></image:image>
        </url>
        <url><loc>https://example.com/blog/second/</loc></url>
    </urlset>
    """


@pytest.fixture
def page_sitemap_xml() -> str:
    return """<?xml version="1.0" encoding="UTF-8"?>
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <url><loc>https://example.com/</loc></url>
        <url><loc>  </loc></url>
        <url><loc>https://example.com/about/</loc></url>
    </urlset>
    """
