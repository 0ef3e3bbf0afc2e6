"""Extractor for product data embedded as JSON in a store's search page."""

import json
from typing import Any, Iterable, Iterator, Optional

import structlog
from bs4 import BeautifulSoup

from assetscout.errors import ParseFailure
from assetscout.state.models import CandidateRecord
from assetscout.tools.scraping.base_extractor import BaseExtractor, ExtractionContext
from assetscout.tools.scraping.registry import ExtractorRegistry

logger = structlog.get_logger()

DATA_SCRIPT_SELECTORS = ("script#__NEXT_DATA__", 'script[type="application/json"]')
PRODUCT_KEY_HINTS = ("product", "asset", "offer")
TITLE_FIELDS = ("title", "name")
SLUG_FIELDS = ("urlSlug", "slug")
DESCRIPTION_FIELDS = ("description", "shortDescription", "summary")
PRICE_FIELDS = ("price", "priceText", "formattedPrice")
MAX_DEPTH = 12


@ExtractorRegistry.register("embedded_data")
class EmbeddedDataExtractor(BaseExtractor):
    """Walks an embedded page-data JSON blob for product-shaped nodes.

    A node counts as a product when it has a title-like field and a
    slug-like field and sits under a key whose name mentions a product,
    asset or offer. The product URL is synthesized from the slug using
    the context's ``product_url`` template.
    """

    def _extract(self, payload: str, context: ExtractionContext) -> Iterable[CandidateRecord]:
        if not context.product_url:
            logger.warning("No product URL template for embedded data", source=context.source)
            return []

        soup = BeautifulSoup(payload, "lxml")
        blobs = []
        for selector in DATA_SCRIPT_SELECTORS:
            blobs.extend(script.string for script in soup.select(selector) if script.string)
            if blobs:
                break

        if not blobs:
            logger.debug("No embedded data block", source=context.source)
            return []

        candidates = []
        seen_slugs = set()
        errors = []
        for blob in blobs:
            try:
                data = json.loads(blob)
            except json.JSONDecodeError as e:
                logger.warning("Skipping malformed embedded data", source=context.source, error=str(e))
                errors.append(str(e))
                continue
            for node in self._walk(data, hinted=False, depth=0):
                slug = str(self._first(node, SLUG_FIELDS)).strip("/")
                if slug in seen_slugs:
                    continue
                seen_slugs.add(slug)
                candidates.append(
                    CandidateRecord(
                        title=self._clean(str(self._first(node, TITLE_FIELDS))),
                        raw_url=context.product_url.format(slug=slug),
                        snippet=self._snippet(node),
                        source=context.source,
                    )
                )

        if len(errors) == len(blobs):
            raise ParseFailure("Malformed embedded data", detail=errors[0])

        return candidates

    def _walk(self, data: Any, hinted: bool, depth: int) -> Iterator[dict]:
        if depth > MAX_DEPTH:
            return

        if isinstance(data, dict):
            if hinted and self._is_product(data):
                yield data
                return
            for key, value in data.items():
                key_hinted = any(hint in str(key).lower() for hint in PRODUCT_KEY_HINTS)
                yield from self._walk(value, hinted or key_hinted, depth + 1)

        elif isinstance(data, list):
            for item in data:
                yield from self._walk(item, hinted, depth + 1)

    def _is_product(self, node: dict) -> bool:
        title = self._first(node, TITLE_FIELDS)
        slug = self._first(node, SLUG_FIELDS)
        return isinstance(title, str) and bool(title.strip()) and isinstance(slug, str) and bool(slug.strip("/ "))

    @staticmethod
    def _first(node: dict, fields: tuple[str, ...]) -> Optional[Any]:
        for field in fields:
            value = node.get(field)
            if value not in (None, ""):
                return value
        return None

    def _snippet(self, node: dict) -> str:
        parts = []
        description = self._first(node, DESCRIPTION_FIELDS)
        if isinstance(description, str):
            parts.append(self._clean(description))

        price_text = self._price_text(node)
        if price_text:
            parts.append(price_text)

        return " ".join(parts)

    def _price_text(self, node: dict) -> str:
        if node.get("isFree") is True:
            return "Free"

        price = self._first(node, PRICE_FIELDS)
        if isinstance(price, dict):
            price = self._first(price, ("formattedPrice", "price", "value"))

        if isinstance(price, bool) or price is None:
            return ""
        if isinstance(price, (int, float)):
            return "Free" if price == 0 else f"${price:.2f}"
        return self._clean(str(price))
