"""Registries for source extractors and the store/sitemap catalogs."""

from pathlib import Path
from typing import Literal, Optional, Type
from urllib.parse import quote_plus

import structlog
import yaml
from pydantic import BaseModel, Field

from .base_extractor import BaseExtractor

logger = structlog.get_logger()


class ListingSelectors(BaseModel):
    """CSS selectors for a fixed-shape store listing page."""

    cell: str
    title: str
    price: Optional[str] = None
    snippet: Optional[str] = None


class DirectSource(BaseModel):
    """A store's own search page, queried alongside the search engine."""

    extractor: str
    url: str
    product_url: Optional[str] = None
    selectors: Optional[ListingSelectors] = None

    def build_url(self, query: str) -> str:
        return self.url.format(query=quote_plus(query))


class StoreRule(BaseModel):
    """Hostname membership and page-shape rules for one store."""

    name: str
    label: str = ""
    hosts: list[str] = Field(default_factory=list)
    host_suffixes: list[str] = Field(default_factory=list)
    shape: Literal["path", "subdomain"] = "path"
    required_segments: list[str] = Field(default_factory=list)
    denied_patterns: list[str] = Field(default_factory=list)
    tag_prefixes: list[str] = Field(default_factory=list)
    max_depth: int = 1
    search_queries: list[str] = Field(default_factory=list)
    direct_source: Optional[DirectSource] = None
    rank: int = 0


class UrlBoost(BaseModel):
    """Score adjustment for URLs matching a pattern."""

    pattern: str
    weight: int


class SitemapCatalog(BaseModel):
    """Sitemaps per docs mode plus scoring boosts."""

    default_mode: str = "docs"
    modes: dict[str, list[str]] = Field(default_factory=dict)
    boosts: list[UrlBoost] = Field(default_factory=list)

    def resolve_mode(self, mode: Optional[str]) -> str:
        """Map a requested mode onto a known one, falling back to the default."""
        if mode and mode in self.modes:
            return mode
        return self.default_mode


class ExtractorRegistry:
    """Registry of extractor classes keyed by payload kind."""

    _extractors: dict[str, Type[BaseExtractor]] = {}
    _stores: dict[Path, list[StoreRule]] = {}
    _sitemaps: dict[Path, SitemapCatalog] = {}

    @classmethod
    def register(cls, kind: str):
        """Decorator to register an extractor for a payload kind.

        Usage:
            @ExtractorRegistry.register("sitemap")
            class SitemapExtractor(BaseExtractor):
                ...
        """

        def decorator(extractor_class: Type[BaseExtractor]):
            extractor_class.kind = kind
            cls._extractors[kind] = extractor_class
            return extractor_class

        return decorator

    @classmethod
    def get_extractor(cls, kind: str) -> BaseExtractor:
        """Instantiate the extractor registered for ``kind``."""
        extractor_class = cls._extractors.get(kind)
        if extractor_class is None:
            raise KeyError(f"No extractor registered for {kind!r}")
        return extractor_class()

    @classmethod
    def list_kinds(cls) -> list[str]:
        return list(cls._extractors.keys())

    @classmethod
    def load_stores(cls, path: Optional[Path] = None) -> list[StoreRule]:
        """Load store rules from YAML, in rank order."""
        from assetscout.config.settings import settings

        path = Path(path or settings.stores_file)
        if path in cls._stores:
            return cls._stores[path]

        with open(path) as f:
            config = yaml.safe_load(f) or {}

        rules = []
        for rank, store_config in enumerate(config.get("stores", [])):
            store_config.setdefault("rank", rank)
            rules.append(StoreRule(**store_config))

        logger.debug("Loaded store rules", path=str(path), stores=[r.name for r in rules])
        cls._stores[path] = rules
        return rules

    @classmethod
    def load_sitemaps(cls, path: Optional[Path] = None) -> SitemapCatalog:
        """Load sitemap modes and boosts from YAML."""
        from assetscout.config.settings import settings

        path = Path(path or settings.sitemaps_file)
        if path in cls._sitemaps:
            return cls._sitemaps[path]

        with open(path) as f:
            config = yaml.safe_load(f) or {}

        catalog = SitemapCatalog(**config)
        cls._sitemaps[path] = catalog
        return catalog

    @classmethod
    def get_store(cls, name: str) -> Optional[StoreRule]:
        for rule in cls.load_stores():
            if rule.name == name:
                return rule
        return None

    @classmethod
    def list_stores(cls) -> list[str]:
        return [rule.name for rule in cls.load_stores()]
