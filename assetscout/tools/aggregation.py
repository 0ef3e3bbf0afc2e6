"""Merging, filtering, deduplication and ranking of annotated records."""

import re
from typing import Iterable, Optional, Sequence, TypeVar

import structlog

from assetscout.state.models import (
    OTHER_STORE,
    AnnotatedRecord,
    PriceFilter,
    PriceTag,
    RankedResult,
    ResolvedRecord,
    SearchQuery,
)
from assetscout.tools.scraping.registry import UrlBoost

logger = structlog.get_logger()

RecordT = TypeVar("RecordT", bound=ResolvedRecord)

SITE_OPERATOR = re.compile(r"site:\S+", re.IGNORECASE)
QUOTES = re.compile(r"[\"']")


def normalize_terms(text: str) -> list[str]:
    """Split a docs query into lowercase terms, dropping site: operators and quotes."""
    text = SITE_OPERATOR.sub(" ", text or "")
    text = QUOTES.sub(" ", text)
    return text.lower().split()


def filter_by_store(records: Iterable[AnnotatedRecord], only: Optional[str]) -> list[AnnotatedRecord]:
    if not only or only == "all":
        return list(records)
    return [r for r in records if r.store == only]


def filter_by_price(records: Iterable[AnnotatedRecord], price: PriceFilter) -> list[AnnotatedRecord]:
    """``free`` keeps free-tagged records; ``paid`` keeps everything else."""
    if price == PriceFilter.FREE:
        return [r for r in records if r.price_tag == PriceTag.FREE]
    if price == PriceFilter.PAID:
        return [r for r in records if r.price_tag != PriceTag.FREE]
    return list(records)


def filter_by_license(records: Iterable[AnnotatedRecord], license: Optional[str]) -> list[AnnotatedRecord]:
    """Case-insensitive substring match against the license tag ("unknown" when untagged)."""
    if not license or not license.strip():
        return list(records)
    wanted = license.strip().lower()
    return [r for r in records if wanted in (r.license_tag or "unknown").lower()]


def deduplicate(records: Iterable[RecordT]) -> list[RecordT]:
    """Keep the first record per canonical URL."""
    seen = set()
    unique = []
    for record in records:
        if record.canonical_url in seen:
            continue
        seen.add(record.canonical_url)
        unique.append(record)
    return unique


def aggregate_assets(
    records: Sequence[AnnotatedRecord],
    query: SearchQuery,
    store_ranks: Optional[dict[str, int]] = None,
    limit: int = 12,
) -> list[RankedResult]:
    """Filter, deduplicate, sort and truncate marketplace-style results.

    Steps run in a fixed order: store filter, price filter, license filter,
    dedupe (first occurrence wins), then a stable sort by store rank, price
    rank (free first) and title.

    Args:
        records: Annotated, page-like records from every source, in discovery order
        query: Search options (only/price/license)
        store_ranks: Store name to sort rank; unknown stores sort last
        limit: Maximum number of results

    Returns:
        Ranked results, at most ``limit`` long
    """
    store_ranks = store_ranks or {}
    other_rank = max(store_ranks.values(), default=-1) + 1

    results = [r for r in records if r.store != OTHER_STORE and r.is_page_like]
    results = filter_by_store(results, query.only)
    results = filter_by_price(results, query.price)
    results = filter_by_license(results, query.license)
    results = deduplicate(results)

    results.sort(
        key=lambda r: (
            store_ranks.get(r.store, other_rank),
            0 if r.price_tag == PriceTag.FREE else 1,
            r.display_title.casefold(),
        )
    )

    logger.debug(
        "Aggregated assets",
        input=len(records),
        kept=len(results),
        limit=limit,
    )
    return [RankedResult(**r.model_dump()) for r in results[:limit]]


def score_document(
    url: str,
    title: str,
    terms: Sequence[str],
    boosts: Sequence[UrlBoost] = (),
    term_match_weight: int = 2,
    keyword_bonus: int = 1,
    keywords: Sequence[str] = ("blueprint", "blueprints"),
) -> int:
    """Relevance score for a sitemap entry.

    Each term found in the title or URL adds ``term_match_weight``; a term
    that is itself a domain keyword adds ``keyword_bonus``. URL boosts then
    lift authoritative documentation and push forums and store pages down.
    """
    text = f"{title} {url}".lower()
    score = 0
    for term in terms:
        if not term:
            continue
        if term in text:
            score += term_match_weight
        if term in keywords:
            score += keyword_bonus

    for boost in boosts:
        if re.search(boost.pattern, url, re.IGNORECASE):
            score += boost.weight
    return score


def rank_documents(
    records: Sequence[ResolvedRecord],
    terms: Sequence[str],
    boosts: Sequence[UrlBoost] = (),
    limit: int = 10,
    term_match_weight: int = 2,
    keyword_bonus: int = 1,
    keywords: Sequence[str] = ("blueprint", "blueprints"),
) -> list[RankedResult]:
    """Deduplicate, score and sort docs results; records scoring <= 0 are dropped.

    Ties keep discovery order.
    """
    scored = []
    for record in deduplicate(records):
        score = score_document(
            record.canonical_url,
            record.title,
            terms,
            boosts=boosts,
            term_match_weight=term_match_weight,
            keyword_bonus=keyword_bonus,
            keywords=keywords,
        )
        if score > 0:
            scored.append(RankedResult(**record.model_dump(), score=score))

    scored.sort(key=lambda r: -r.score)

    logger.debug("Ranked documents", input=len(records), scored=len(scored), limit=limit)
    return scored[:limit]
