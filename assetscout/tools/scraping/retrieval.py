"""Retrieval strategy: primary/fallback search fetches and sitemap descent."""

import asyncio
from typing import Awaitable, Optional, Sequence
from urllib.parse import urlencode

import structlog

from assetscout.config.settings import Settings, settings as default_settings
from assetscout.logging import LogTimer, log_scrape
from assetscout.state.models import (
    CandidateRecord,
    FailureKind,
    SourceFailure,
    SourceOutcome,
)
from assetscout.tools.scraping.base_extractor import BaseExtractor, ExtractionContext
from assetscout.tools.scraping.extractors.sitemap import SitemapExtractor, SitemapKind
from assetscout.tools.scraping.http_client import RobustHttpClient, get_http_client
from assetscout.tools.scraping.registry import ExtractorRegistry, StoreRule

logger = structlog.get_logger()


class Retriever:
    """Runs retrieval units against an injected fetch client.

    A retrieval unit is one logical source (a search-engine query, a store's
    own search page, or a sitemap). Units never raise: fetch and parse
    problems are recorded on the returned ``SourceOutcome`` and the unit
    contributes whatever candidates it did find.

    The client needs ``get(url)`` and ``post(url, data=...)`` coroutines that
    return an object with a ``text`` attribute, or None on failure.
    """

    def __init__(self, client=None, settings: Optional[Settings] = None):
        if client is None:
            client = (
                RobustHttpClient(timeout=settings.http_timeout_seconds, user_agent=settings.user_agent)
                if settings is not None
                else get_http_client()
            )
        self.client = client
        self.settings = settings or default_settings

    async def search_engine(self, query_text: str, source: str) -> SourceOutcome:
        """Query the HTML search engine, falling back to the mirror once.

        The POST mirror is tried only when the GET attempt yields zero
        candidates (including when it fails outright).

        Args:
            query_text: Full search-engine query (site filters included)
            source: Name of this retrieval unit

        Returns:
            SourceOutcome with the candidates of whichever attempt produced them
        """
        extractor = ExtractorRegistry.get_extractor("rendered_results")
        region = self.settings.search_engine_region
        failures: list[SourceFailure] = []

        primary_url = f"{self.settings.search_engine_url}?{urlencode({'q': query_text, 'kl': region})}"
        candidates = await self._fetch_and_extract(
            extractor,
            ExtractionContext(source=source, url=primary_url, base_url=self.settings.redirect_base_url),
            failures,
        )
        if candidates:
            return SourceOutcome(source=source, candidates=candidates, failures=failures)

        logger.info("Primary search empty, trying mirror", source=source, query=query_text)
        fallback_url = self.settings.search_engine_fallback_url
        candidates = await self._fetch_and_extract(
            extractor,
            ExtractionContext(source=source, url=fallback_url, base_url=self.settings.redirect_base_url),
            failures,
            data={"q": query_text, "kl": region},
        )
        return SourceOutcome(
            source=source, candidates=candidates, failures=failures, fallback_used=True
        )

    async def store_direct(self, rule: StoreRule, query_text: str) -> SourceOutcome:
        """Fetch a store's own search page once and extract its listings."""
        source = f"{rule.name}:direct"
        direct = rule.direct_source
        if direct is None:
            return SourceOutcome(source=source)

        extractor = ExtractorRegistry.get_extractor(direct.extractor)
        failures: list[SourceFailure] = []
        url = direct.build_url(query_text)
        candidates = await self._fetch_and_extract(
            extractor,
            ExtractionContext(
                source=source,
                url=url,
                base_url=url,
                product_url=direct.product_url,
                selectors=direct.selectors.model_dump() if direct.selectors else None,
            ),
            failures,
        )
        return SourceOutcome(source=source, candidates=candidates, failures=failures)

    async def sitemap(self, url: str) -> SourceOutcome:
        """Fetch a sitemap and, for an index, its first few children.

        Children are fetched concurrently and merged in index order, before
        any page entries of the top-level document. A failed child is
        recorded and skipped.
        """
        extractor = ExtractorRegistry.get_extractor("sitemap")
        failures: list[SourceFailure] = []

        with LogTimer("sitemap", sitemap=url) as timer:
            candidates = await self._walk_sitemap(extractor, url, failures)

        log_scrape(
            url,
            url,
            success=not failures,
            duration_ms=timer.duration_ms,
            items_found=len(candidates),
        )
        return SourceOutcome(source=url, candidates=candidates, failures=failures)

    async def _walk_sitemap(
        self, extractor: SitemapExtractor, url: str, failures: list[SourceFailure]
    ) -> list[CandidateRecord]:
        text = await self._fetch_text(url, url, failures)
        if text is None:
            return []

        document = self._parse_sitemap(extractor, text, url, url, failures)
        if document is None:
            return []

        candidates: list[CandidateRecord] = []
        if document.kind == SitemapKind.INDEX:
            children = document.locations[: self.settings.sitemap_child_limit]
            logger.debug(
                "Descending into sitemap index",
                sitemap=url,
                children=len(children),
                skipped=len(document.locations) - len(children),
            )
            child_outcomes = await asyncio.gather(
                *(self._sitemap_child(extractor, child, url) for child in children)
            )
            for child_candidates, child_failures in child_outcomes:
                candidates.extend(child_candidates)
                failures.extend(child_failures)
        elif document.kind == SitemapKind.URLSET:
            candidates.extend(extractor.candidates_from(document, url))
        return candidates

    async def gather(self, units: Sequence[Awaitable[SourceOutcome]]) -> list[SourceOutcome]:
        """Run independent units concurrently; outcomes keep unit order."""
        results = await asyncio.gather(*units, return_exceptions=True)

        outcomes = []
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Retrieval unit crashed", error=str(result))
                outcomes.append(
                    SourceOutcome(
                        source="unknown",
                        failures=[
                            SourceFailure(
                                kind=FailureKind.UPSTREAM_FETCH,
                                source="unknown",
                                detail=str(result),
                            )
                        ],
                    )
                )
            else:
                outcomes.append(result)
        return outcomes

    async def _sitemap_child(
        self, extractor: SitemapExtractor, url: str, source: str
    ) -> tuple[list[CandidateRecord], list[SourceFailure]]:
        failures: list[SourceFailure] = []
        text = await self._fetch_text(url, source, failures)
        if text is None:
            return [], failures

        document = self._parse_sitemap(extractor, text, url, source, failures)
        if document is None or document.kind != SitemapKind.URLSET:
            return [], failures
        return extractor.candidates_from(document, source), failures

    def _parse_sitemap(self, extractor: SitemapExtractor, text: str, url: str, source: str, failures):
        try:
            return extractor.parse(text)
        except Exception as e:
            logger.warning("Failed to parse sitemap", url=url, error=str(e))
            failures.append(
                SourceFailure(kind=FailureKind.PARSE, source=source, url=url, detail=str(e))
            )
            return None

    async def _fetch_text(
        self,
        url: str,
        source: str,
        failures: list[SourceFailure],
        data: Optional[dict] = None,
    ) -> Optional[str]:
        """Fetch a URL (POST when ``data`` is given); record failures."""
        try:
            if data is not None:
                response = await self.client.post(url, data=data)
            else:
                response = await self.client.get(url)
        except Exception as e:
            logger.warning("Fetch raised", url=url, source=source, error=str(e))
            response = None
            detail = str(e)
        else:
            detail = "no response"

        if response is None:
            failures.append(
                SourceFailure(
                    kind=FailureKind.UPSTREAM_FETCH, source=source, url=url, detail=detail
                )
            )
            return None
        return response.text

    async def _fetch_and_extract(
        self,
        extractor: BaseExtractor,
        context: ExtractionContext,
        failures: list[SourceFailure],
        data: Optional[dict] = None,
    ) -> list[CandidateRecord]:
        with LogTimer("fetch_and_extract", source=context.source) as timer:
            text = await self._fetch_text(context.url, context.source, failures, data=data)
            candidates: list[CandidateRecord] = []
            if text is not None:
                candidates, failure = extractor.extract_with_status(text, context)
                if failure:
                    failures.append(failure)

        log_scrape(
            context.source,
            context.url,
            success=text is not None,
            duration_ms=timer.duration_ms,
            items_found=len(candidates),
        )
        return candidates
