"""Store membership and page-shape classification for candidate URLs."""

import re
from functools import lru_cache
from typing import NamedTuple, Optional, Sequence
from urllib.parse import urlsplit

import structlog

from assetscout.state.models import OTHER_STORE, ClassifiedRecord, ResolvedRecord
from assetscout.tools.scraping.registry import ExtractorRegistry, StoreRule

logger = structlog.get_logger()


class Classification(NamedTuple):
    """Which store a URL belongs to and whether it looks like a product page."""

    store: str
    is_page_like: bool


@lru_cache(maxsize=64)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def host_matches(host: str, rule: StoreRule) -> bool:
    """Exact hostname match, or suffix match for multi-tenant hosts."""
    if host in rule.hosts:
        return True
    return any(host == suffix or host.endswith("." + suffix) for suffix in rule.host_suffixes)


def _path_page_like(path: str, rule: StoreRule) -> bool:
    path = path.lower()
    if not all(segment.lower() in path for segment in rule.required_segments):
        return False
    # Listing, search and pagination pages share the product prefix
    return not any(_compile(pattern).search(path) for pattern in rule.denied_patterns)


def _subdomain_page_like(host: str, path: str, rule: StoreRule) -> bool:
    if host in rule.host_suffixes or host in rule.hosts:
        return False  # root host, not a creator subdomain
    if any(path.startswith(prefix) for prefix in rule.tag_prefixes):
        return False
    depth = len([segment for segment in path.split("/") if segment])
    return depth <= rule.max_depth


def classify(url: str, rules: Optional[Sequence[StoreRule]] = None) -> Classification:
    """Decide which store a URL belongs to and whether it is product-like.

    Args:
        url: Canonical URL
        rules: Store rules; defaults to the configured catalog

    Returns:
        Classification with store name (or "other") and page-shape verdict
    """
    if rules is None:
        rules = ExtractorRegistry.load_stores()

    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return Classification(OTHER_STORE, False)

    for rule in rules:
        if not host_matches(host, rule):
            continue
        if rule.shape == "subdomain":
            return Classification(rule.name, _subdomain_page_like(host, parts.path, rule))
        return Classification(rule.name, _path_page_like(parts.path, rule))

    return Classification(OTHER_STORE, False)


def classify_record(
    record: ResolvedRecord, rules: Optional[Sequence[StoreRule]] = None
) -> ClassifiedRecord:
    """Build a classified record from a resolved one."""
    store, is_page_like = classify(record.canonical_url, rules)
    return ClassifiedRecord(**record.model_dump(), store=store, is_page_like=is_page_like)
