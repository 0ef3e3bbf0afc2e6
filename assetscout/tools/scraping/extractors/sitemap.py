"""Extractor for sitemap XML (sitemap indexes and urlsets)."""

from enum import Enum
from typing import Iterable

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from assetscout.state.models import CandidateRecord
from assetscout.tools.scraping.base_extractor import BaseExtractor, ExtractionContext
from assetscout.tools.scraping.registry import ExtractorRegistry
from assetscout.tools.scraping.urls import title_from_url


class SitemapKind(str, Enum):
    INDEX = "index"
    URLSET = "urlset"
    UNKNOWN = "unknown"


class SitemapDocument(BaseModel):
    """Parsed sitemap: child sitemap locations or page locations."""

    kind: SitemapKind = SitemapKind.UNKNOWN
    locations: list[str] = Field(default_factory=list)


def parse_sitemap(xml: str) -> SitemapDocument:
    """Parse sitemap XML into an index or a urlset.

    Only ``<loc>`` values of ``<sitemap>`` / ``<url>`` entries are kept.
    """
    soup = BeautifulSoup(xml, "xml")

    index = soup.find("sitemapindex")
    if index is not None:
        return SitemapDocument(kind=SitemapKind.INDEX, locations=_locations(index, "sitemap"))

    urlset = soup.find("urlset")
    if urlset is not None:
        return SitemapDocument(kind=SitemapKind.URLSET, locations=_locations(urlset, "url"))

    return SitemapDocument()


def _locations(root, entry_tag: str) -> list[str]:
    locations = []
    for entry in root.find_all(entry_tag, recursive=False):
        loc = entry.find("loc")
        if loc is None:
            continue
        text = loc.get_text(strip=True)
        if text:
            locations.append(text)
    return locations


@ExtractorRegistry.register("sitemap")
class SitemapExtractor(BaseExtractor):
    """Turns urlset entries into candidates; index entries are left to retrieval."""

    def parse(self, payload: str) -> SitemapDocument:
        return parse_sitemap(payload)

    def candidates_from(self, document: SitemapDocument, source: str) -> list[CandidateRecord]:
        if document.kind != SitemapKind.URLSET:
            return []
        return [
            CandidateRecord(title=title_from_url(loc), raw_url=loc, source=source)
            for loc in document.locations
        ]

    def _extract(self, payload: str, context: ExtractionContext) -> Iterable[CandidateRecord]:
        return self.candidates_from(self.parse(payload), context.source)
