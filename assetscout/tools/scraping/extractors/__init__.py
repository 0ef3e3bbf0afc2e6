"""Source extractors, one per raw payload kind."""

from .results_page import RenderedResultsExtractor
from .embedded_data import EmbeddedDataExtractor
from .sitemap import SitemapExtractor, SitemapDocument, SitemapKind, parse_sitemap
from .store_listing import StoreListingExtractor

__all__ = [
    "RenderedResultsExtractor",
    "EmbeddedDataExtractor",
    "SitemapExtractor",
    "SitemapDocument",
    "SitemapKind",
    "parse_sitemap",
    "StoreListingExtractor",
]
