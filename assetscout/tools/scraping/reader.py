"""Fetch an allowlisted documentation page and reduce it to readable text."""

from typing import Optional, Sequence
from urllib.parse import urlsplit

import structlog
from bs4 import BeautifulSoup

from assetscout.config.settings import settings
from assetscout.errors import UpstreamFetchFailure
from assetscout.state.models import PageContent
from assetscout.tools.scraping.http_client import get_http_client

logger = structlog.get_logger()

REMOVED_TAGS = ["nav", "header", "footer", "script", "style", "noscript"]
TEXT_TAGS = ["h1", "h2", "h3", "h4", "h5", "p", "li", "code", "pre"]


def is_allowed(url: Optional[str], allowlist: Optional[Sequence[str]] = None) -> bool:
    """Check the URL's host against the allowlist (suffix match)."""
    if not url:
        return False
    allowlist = allowlist if allowlist is not None else settings.reader_allowlist
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    host = parts.hostname.lower()
    for domain in allowlist:
        domain = domain.removeprefix("*.").lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def extract_page(html: str, max_chars: Optional[int] = None) -> tuple[str, str]:
    """Extract the title and the main text of a page.

    Text comes from headings, paragraphs, list items and code blocks
    inside the first ``article``/``main`` element (or ``body``), with
    navigation chrome removed. One element per line.

    Returns:
        Tuple of (title, content)
    """
    max_chars = max_chars if max_chars is not None else settings.reader_max_chars
    soup = BeautifulSoup(html, "lxml")

    title_elem = soup.find("title")
    title = title_elem.get_text(strip=True) if title_elem else ""

    root = soup.select_one("article, main") or soup.body or soup
    for element in root.find_all(REMOVED_TAGS):
        element.decompose()

    lines = []
    for element in root.find_all(TEXT_TAGS):
        text = " ".join(element.get_text().split())
        if text:
            lines.append(text)

    return title, "\n".join(lines).strip()[:max_chars]


async def read_page(url: str, client=None) -> PageContent:
    """Fetch a page and return its cleaned text.

    Raises:
        UpstreamFetchFailure: when the page cannot be fetched
    """
    client = client or get_http_client()
    response = await client.get(url)
    if response is None:
        raise UpstreamFetchFailure("Fetch failed", detail=f"Could not fetch {url}")

    title, content = extract_page(response.text)
    logger.info("Page read", url=url[:100], length=len(content))
    return PageContent(url=url, title=title, length=len(content), content=content)
