"""Extractor for rendered search-results HTML (DuckDuckGo HTML endpoint)."""

from typing import Iterable

import structlog
from bs4 import BeautifulSoup

from assetscout.state.models import CandidateRecord
from assetscout.tools.scraping.base_extractor import BaseExtractor, ExtractionContext
from assetscout.tools.scraping.registry import ExtractorRegistry
from assetscout.tools.scraping.urls import canonicalize

logger = structlog.get_logger()

RESULT_LINK_SELECTOR = "a.result__a, .result__title a"
SNIPPET_SELECTOR = ".result__snippet"
REDIRECT_LINK_SELECTOR = 'a[href*="/l/?uddg="]'
CONTAINER_LINK_SELECTOR = "#links a, .results a"


@ExtractorRegistry.register("rendered_results")
class RenderedResultsExtractor(BaseExtractor):
    """Reads result links from a rendered search-results page.

    Selector strategies are tried in order until one yields candidates:
    1. Result title links, with the snippet of the enclosing result block
    2. Redirect-wrapped outbound links anywhere in the page
    3. Any link inside a known results container

    Links whose href does not resolve to an http(s) URL are not counted,
    so they never mask a later strategy or the mirror fallback.
    """

    def _extract(self, payload: str, context: ExtractionContext) -> Iterable[CandidateRecord]:
        soup = BeautifulSoup(payload, "lxml")

        candidates = []
        for link in soup.select(RESULT_LINK_SELECTOR):
            candidate = self._candidate(link, context, self._find_snippet(link))
            if candidate:
                candidates.append(candidate)

        if not candidates:
            for selector in (REDIRECT_LINK_SELECTOR, CONTAINER_LINK_SELECTOR):
                for link in soup.select(selector):
                    candidate = self._candidate(link, context, "")
                    if candidate:
                        candidates.append(candidate)
                if candidates:
                    logger.debug("Used fallback result selector", selector=selector)
                    break

        return candidates

    def _candidate(self, link, context: ExtractionContext, snippet: str):
        href = (link.get("href") or "").strip()
        if canonicalize(href, context.base_url) is None:
            return None
        return CandidateRecord(
            title=self._clean(link.get_text()),
            raw_url=href,
            snippet=snippet,
            source=context.source,
        )

    def _find_snippet(self, link) -> str:
        """Snippet text of the result block the link belongs to."""
        result = link.find_parent(class_="result")
        if result is not None:
            snippet = result.select_one(SNIPPET_SELECTOR)
            if snippet is not None and snippet.get_text(strip=True):
                return self._clean(snippet.get_text())

        if link.parent is not None:
            snippet = link.parent.select_one(SNIPPET_SELECTOR)
            if snippet is not None:
                return self._clean(snippet.get_text())

        return ""
