"""Pytest configuration and shared fixtures."""

from typing import Optional
from urllib.parse import quote

import pytest

from assetscout.config.settings import Settings
from assetscout.tools.scraping.registry import ExtractorRegistry


class FakeResponse:
    """Minimal stand-in for httpx.Response."""

    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code


class FakeClient:
    """Fetch client serving canned bodies by URL.

    Lookup tries the exact URL first, then the URL without its query
    string. Unknown URLs (and URLs mapped to None) behave like a failed
    fetch and return None. Every call is recorded in ``calls``.
    """

    def __init__(self, pages: Optional[dict] = None):
        self.pages = pages or {}
        self.calls: list[tuple[str, str, Optional[dict]]] = []

    def _lookup(self, url: str):
        if url in self.pages:
            body = self.pages[url]
        else:
            body = self.pages.get(url.split("?")[0])
        if isinstance(body, Exception):
            raise body
        return FakeResponse(body) if body is not None else None

    async def get(self, url: str, headers=None, params=None):
        self.calls.append(("GET", url, None))
        return self._lookup(url)

    async def post(self, url: str, data=None, headers=None):
        self.calls.append(("POST", url, data))
        return self._lookup(url)

    def urls(self, method: Optional[str] = None) -> list[str]:
        return [url for m, url, _ in self.calls if method is None or m == method]


def ddg_link(destination: str, rut: str = "x") -> str:
    """Redirect-wrapped href as rendered by the HTML search engine."""
    return f"//duckduckgo.com/l/?uddg={quote(destination, safe='')}&rut={rut}"


def results_page(*rows: tuple[str, str, str]) -> str:
    """Render (href, title, snippet) rows as a search-results page."""
    blocks = "".join(
        f"""
        <div class="result results_links web-result">
          <h2 class="result__title"><a class="result__a" href="{href}">{title}</a></h2>
          <a class="result__snippet" href="{href}">{snippet}</a>
        </div>"""
        for href, title, snippet in rows
    )
    return f'<html><body><div id="links" class="results">{blocks}</div></body></html>'


def urlset(*locations: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locations)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemap_index(*locations: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locations)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


EMPTY_RESULTS_PAGE = '<html><body><div class="no-results">No results.</div></body></html>'


@pytest.fixture
def fake_client():
    """Factory for a FakeClient serving the given pages."""
    return FakeClient


@pytest.fixture
def test_settings() -> Settings:
    """Settings with store direct sources disabled."""
    return Settings(direct_store_sources=False)


@pytest.fixture
def store_rules():
    """Store rules from the bundled catalog."""
    return ExtractorRegistry.load_stores()
