"""End-to-end search pipelines: retrieve, resolve, classify, tag, rank."""

import time
from typing import Iterable, Optional, Sequence

import structlog
from pydantic import BaseModel, Field

from assetscout.config.settings import Settings, settings as default_settings
from assetscout.logging import log_search
from assetscout.state.models import (
    OTHER_STORE,
    AnnotatedRecord,
    CandidateRecord,
    RankedResult,
    ResolvedRecord,
    SearchQuery,
    SourceOutcome,
)
from assetscout.tools.aggregation import aggregate_assets, normalize_terms, rank_documents
from assetscout.tools.scraping.classifier import classify_record
from assetscout.tools.scraping.registry import ExtractorRegistry, StoreRule
from assetscout.tools.scraping.retrieval import Retriever
from assetscout.tools.scraping.tagger import tag_record
from assetscout.tools.scraping.urls import canonicalize

logger = structlog.get_logger()


class AssetSearchResult(BaseModel):
    """Ranked asset results plus the outcome of every retrieval unit."""

    results: list[RankedResult] = Field(default_factory=list)
    outcomes: list[SourceOutcome] = Field(default_factory=list)


class DocsSearchResult(BaseModel):
    """Ranked documentation results for one sitemap mode."""

    mode: str
    results: list[RankedResult] = Field(default_factory=list)
    outcomes: list[SourceOutcome] = Field(default_factory=list)


def resolve(candidates: Iterable[CandidateRecord], base: str) -> list[ResolvedRecord]:
    """Attach canonical URLs; candidates that are not usable URLs are dropped."""
    resolved = []
    for candidate in candidates:
        canonical = canonicalize(candidate.raw_url, base)
        if canonical is None:
            logger.debug("Dropped non-URL candidate", raw_url=candidate.raw_url[:100])
            continue
        resolved.append(ResolvedRecord(**candidate.model_dump(), canonical_url=canonical))
    return resolved


def annotate(
    records: Iterable[ResolvedRecord], rules: Sequence[StoreRule]
) -> list[AnnotatedRecord]:
    """Classify and tag records, keeping only page-like records of known stores."""
    annotated = []
    for record in records:
        classified = classify_record(record, rules)
        if classified.store == OTHER_STORE or not classified.is_page_like:
            continue
        annotated.append(tag_record(classified))
    return annotated


def _merge(outcomes: Sequence[SourceOutcome]) -> list[CandidateRecord]:
    return [candidate for outcome in outcomes for candidate in outcome.candidates]


def _base_for(outcome: SourceOutcome, config: Settings, rules: Sequence[StoreRule]) -> str:
    """Origin that relative links of this unit resolve against."""
    for rule in rules:
        if outcome.source == f"{rule.name}:direct" and rule.direct_source:
            return rule.direct_source.url.split("?")[0]
    return config.redirect_base_url


async def search_assets(
    query: SearchQuery,
    retriever: Optional[Retriever] = None,
    settings: Optional[Settings] = None,
    rules: Optional[Sequence[StoreRule]] = None,
) -> AssetSearchResult:
    """Search every targeted store and return ranked product pages.

    Args:
        query: Search terms and filters
        retriever: Retrieval strategy (defaults to one using the global client)
        settings: Settings override
        rules: Store rules override (defaults to the configured catalog)

    Returns:
        AssetSearchResult with ranked results and per-unit outcomes
    """
    config = settings or default_settings
    retriever = retriever or Retriever(settings=settings)
    rules = list(rules if rules is not None else ExtractorRegistry.load_stores())
    start = time.perf_counter()

    targeted = [r for r in rules if query.only in ("all", None) or r.name == query.only]
    if not targeted:
        logger.info("No store matches scope", only=query.only)

    units = []
    for rule in targeted:
        for i, template in enumerate(rule.search_queries):
            units.append(
                retriever.search_engine(template.format(query=query.terms), f"{rule.name}:search:{i}")
            )
        if config.direct_store_sources and rule.direct_source:
            units.append(retriever.store_direct(rule, query.terms))

    outcomes = await retriever.gather(units)

    records: list[AnnotatedRecord] = []
    for outcome in outcomes:
        resolved = resolve(outcome.candidates, _base_for(outcome, config, rules))
        records.extend(annotate(resolved, rules))

    results = aggregate_assets(
        records,
        query,
        store_ranks={rule.name: rule.rank for rule in rules},
        limit=config.max_asset_results,
    )

    log_search(
        query=query.terms,
        mode="assets",
        results_count=len(results),
        sources=[o.source for o in outcomes],
        duration_ms=(time.perf_counter() - start) * 1000,
        degraded_sources=[o.source for o in outcomes if o.degraded],
    )
    return AssetSearchResult(results=results, outcomes=outcomes)


async def search_docs(
    query_text: str,
    mode: Optional[str] = None,
    retriever: Optional[Retriever] = None,
    settings: Optional[Settings] = None,
) -> DocsSearchResult:
    """Search the sitemaps of a docs mode and return scored pages.

    Args:
        query_text: Raw search text
        mode: docs | forums | marketplace | all (unknown falls back to the default)
        retriever: Retrieval strategy override
        settings: Settings override

    Returns:
        DocsSearchResult with the resolved mode and scored results
    """
    config = settings or default_settings
    retriever = retriever or Retriever(settings=settings)
    catalog = ExtractorRegistry.load_sitemaps()
    resolved_mode = catalog.resolve_mode(mode)
    start = time.perf_counter()

    outcomes = await retriever.gather(
        [retriever.sitemap(url) for url in catalog.modes.get(resolved_mode, [])]
    )
    records = resolve(_merge(outcomes), config.redirect_base_url)

    results = rank_documents(
        records,
        normalize_terms(query_text),
        boosts=catalog.boosts,
        limit=config.max_doc_results,
        term_match_weight=config.term_match_weight,
        keyword_bonus=config.keyword_bonus,
        keywords=config.domain_keywords,
    )

    log_search(
        query=query_text,
        mode=resolved_mode,
        results_count=len(results),
        sources=[o.source for o in outcomes],
        duration_ms=(time.perf_counter() - start) * 1000,
        degraded_sources=[o.source for o in outcomes if o.degraded],
    )
    return DocsSearchResult(mode=resolved_mode, results=results, outcomes=outcomes)
