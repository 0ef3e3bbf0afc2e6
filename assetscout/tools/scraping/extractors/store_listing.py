"""Extractor for fixed-shape store listing pages (e.g. itch.io search)."""

from typing import Iterable

import structlog
from bs4 import BeautifulSoup

from assetscout.state.models import CandidateRecord
from assetscout.tools.scraping.base_extractor import BaseExtractor, ExtractionContext
from assetscout.tools.scraping.registry import ExtractorRegistry, ListingSelectors

logger = structlog.get_logger()


@ExtractorRegistry.register("store_listing")
class StoreListingExtractor(BaseExtractor):
    """Reads title, link, price text and snippet from each listing cell."""

    def _extract(self, payload: str, context: ExtractionContext) -> Iterable[CandidateRecord]:
        if not context.selectors:
            logger.warning("No listing selectors configured", source=context.source)
            return []
        selectors = ListingSelectors(**context.selectors)

        soup = BeautifulSoup(payload, "lxml")
        cells = soup.select(selectors.cell)
        logger.debug("Found listing cells", source=context.source, count=len(cells))

        candidates = []
        for cell in cells:
            link = cell.select_one(selectors.title)
            if link is None or not link.get("href"):
                continue

            parts = []
            if selectors.snippet:
                snippet = cell.select_one(selectors.snippet)
                if snippet is not None:
                    parts.append(self._clean(snippet.get_text()))
            if selectors.price:
                price = cell.select_one(selectors.price)
                if price is not None:
                    parts.append(self._clean(price.get_text()))

            candidates.append(
                CandidateRecord(
                    title=self._clean(link.get_text()),
                    raw_url=link["href"].strip(),
                    snippet=" ".join(p for p in parts if p),
                    source=context.source,
                )
            )

        return candidates
