"""Tests for filtering, deduplication and ranking."""

import pytest

from assetscout.state.models import (
    OTHER_STORE,
    AnnotatedRecord,
    PriceFilter,
    PriceTag,
    ResolvedRecord,
    SearchQuery,
)
from assetscout.tools.aggregation import (
    aggregate_assets,
    deduplicate,
    filter_by_license,
    filter_by_price,
    filter_by_store,
    normalize_terms,
    rank_documents,
    score_document,
)
from assetscout.tools.scraping.registry import UrlBoost

RANKS = {"marketplace": 0, "itch": 1}
BOOSTS = [
    UrlBoost(pattern=r"dev\.epicgames\.com/documentation", weight=3),
    UrlBoost(pattern=r"docs\.unrealengine\.com", weight=3),
    UrlBoost(pattern=r"forums\.unrealengine\.com", weight=-2),
    UrlBoost(pattern=r"unrealengine\.com/marketplace", weight=-1),
]


def asset(url, title="", store="marketplace", price=PriceTag.UNKNOWN, license=None, page_like=True):
    return AnnotatedRecord(
        title=title,
        raw_url=url,
        canonical_url=url,
        store=store,
        is_page_like=page_like,
        price_tag=price,
        license_tag=license,
    )


def doc(url, title=""):
    return ResolvedRecord(title=title, raw_url=url, canonical_url=url)


class TestNormalizeTerms:
    """Tests for docs query normalization."""

    def test_lowercase_split(self):
        assert normalize_terms("Blueprint  Interfaces") == ["blueprint", "interfaces"]

    def test_site_operator_and_quotes_removed(self):
        assert normalize_terms('site:docs.unrealengine.com "Nanite" settings') == ["nanite", "settings"]

    def test_empty(self):
        assert normalize_terms("") == []


class TestFilters:
    """Tests for individual filters."""

    @pytest.fixture
    def records(self):
        return [
            asset("https://www.unrealengine.com/marketplace/en-US/product/a", price=PriceTag.FREE, license="CC0"),
            asset("https://a.itch.io/b", store="itch", price=PriceTag.PAID, license="MIT"),
            asset("https://b.itch.io/c", store="itch", price=PriceTag.UNKNOWN),
        ]

    def test_store_filter(self, records):
        assert [r.store for r in filter_by_store(records, "itch")] == ["itch", "itch"]
        assert len(filter_by_store(records, "all")) == 3
        assert len(filter_by_store(records, None)) == 3

    def test_free_filter(self, records):
        assert all(r.price_tag == PriceTag.FREE for r in filter_by_price(records, PriceFilter.FREE))

    def test_paid_filter_keeps_unknown(self, records):
        """Anything not tagged free counts as paid."""
        kept = filter_by_price(records, PriceFilter.PAID)
        assert [r.price_tag for r in kept] == [PriceTag.PAID, PriceTag.UNKNOWN]

    def test_any_filter(self, records):
        assert len(filter_by_price(records, PriceFilter.ANY)) == 3

    def test_license_substring_case_insensitive(self, records):
        assert [r.license_tag for r in filter_by_license(records, "cc")] == ["CC0"]
        assert [r.license_tag for r in filter_by_license(records, "mIt")] == ["MIT"]

    def test_license_unknown(self, records):
        kept = filter_by_license(records, "unknown")
        assert [r.canonical_url for r in kept] == ["https://b.itch.io/c"]

    def test_blank_license_is_no_filter(self, records):
        assert len(filter_by_license(records, "  ")) == 3


class TestDeduplicate:
    """Tests for canonical URL deduplication."""

    def test_first_occurrence_wins(self):
        first = asset("https://a.itch.io/x", title="First")
        second = asset("https://a.itch.io/x", title="Second")
        other = asset("https://a.itch.io/y")
        assert [r.title for r in deduplicate([first, other, second])] == ["First", ""]

    def test_no_shared_urls(self):
        records = [asset(f"https://a.itch.io/{i % 3}") for i in range(10)]
        urls = [r.canonical_url for r in deduplicate(records)]
        assert len(urls) == len(set(urls)) == 3


class TestAggregateAssets:
    """Tests for the assets ranking pipeline."""

    def test_sort_by_store_price_then_title(self):
        records = [
            asset("https://c.itch.io/z", title="Zeta", store="itch", price=PriceTag.FREE),
            asset("https://www.unrealengine.com/marketplace/en-US/product/b", title="beta", price=PriceTag.PAID),
            asset("https://www.unrealengine.com/marketplace/en-US/product/c", title="Charlie", price=PriceTag.FREE),
            asset("https://www.unrealengine.com/marketplace/en-US/product/a", title="Alpha", price=PriceTag.UNKNOWN),
        ]
        results = aggregate_assets(records, SearchQuery(text="x"), store_ranks=RANKS)
        assert [r.title for r in results] == ["Charlie", "Alpha", "beta", "Zeta"]

    def test_drops_other_and_non_page_like(self):
        records = [
            asset("https://forums.unrealengine.com/t/1", store=OTHER_STORE),
            asset("https://itch.io/search?q=x", store="itch", page_like=False),
            asset("https://a.itch.io/kept", store="itch"),
        ]
        results = aggregate_assets(records, SearchQuery(text="x"), store_ranks=RANKS)
        assert [r.canonical_url for r in results] == ["https://a.itch.io/kept"]

    def test_filters_applied(self):
        records = [
            asset("https://a.itch.io/1", store="itch", price=PriceTag.FREE, license="CC0"),
            asset("https://a.itch.io/2", store="itch", price=PriceTag.FREE, license="MIT"),
            asset("https://a.itch.io/3", store="itch", price=PriceTag.PAID, license="CC0"),
            asset("https://www.unrealengine.com/marketplace/en-US/product/4", price=PriceTag.FREE, license="CC0"),
        ]
        query = SearchQuery(text="x", only="itch", price=PriceFilter.FREE, license="cc0")
        results = aggregate_assets(records, query, store_ranks=RANKS)
        assert [r.canonical_url for r in results] == ["https://a.itch.io/1"]

    def test_price_filter_runs_before_dedupe(self):
        """A paid duplicate listed first must not shadow the free copy."""
        records = [
            asset("https://a.itch.io/x", title="A", store="itch", price=PriceTag.PAID),
            asset("https://a.itch.io/x", title="B", store="itch", price=PriceTag.FREE),
        ]
        query = SearchQuery(text="x", price=PriceFilter.FREE)
        results = aggregate_assets(records, query, store_ranks=RANKS)
        assert [r.title for r in results] == ["B"]

    def test_truncates_after_sorting(self):
        records = [asset(f"https://a.itch.io/{i}", title=f"T{i:02d}", store="itch") for i in range(20)]
        records.append(asset("https://www.unrealengine.com/marketplace/en-US/product/last", title="ZZZ"))
        results = aggregate_assets(records, SearchQuery(text="x"), store_ranks=RANKS, limit=12)
        assert len(results) == 12
        assert results[0].title == "ZZZ"

    def test_missing_title_sorted_by_url_title(self):
        records = [
            asset("https://a.itch.io/zebra-pack", store="itch"),
            asset("https://a.itch.io/apple-pack", store="itch"),
        ]
        results = aggregate_assets(records, SearchQuery(text="x"), store_ranks=RANKS)
        assert [r.display_title for r in results] == ["apple pack", "zebra pack"]

    def test_empty_input(self):
        assert aggregate_assets([], SearchQuery(text="x")) == []


class TestScoreDocument:
    """Tests for docs relevance scoring."""

    def test_term_matches(self):
        score = score_document("https://example.com/nanite-settings", "", ["nanite", "settings", "lumen"])
        assert score == 4

    def test_keyword_bonus(self):
        score = score_document("https://example.com/blueprint-basics", "", ["blueprint"])
        assert score == 3

    def test_keyword_bonus_without_match(self):
        """The domain keyword bonus counts even when the page lacks the term."""
        assert score_document("https://example.com/other", "", ["blueprints"]) == 1

    def test_title_is_searched(self):
        assert score_document("https://example.com/p", "Nanite Overview", ["nanite"]) == 2

    def test_boosts(self):
        terms = ["nanite"]
        assert score_document("https://dev.epicgames.com/documentation/nanite", "", terms, BOOSTS) == 5
        assert score_document("https://forums.unrealengine.com/t/nanite", "", terms, BOOSTS) == 0
        assert score_document("https://www.unrealengine.com/marketplace/nanite", "", terms, BOOSTS) == 1


class TestRankDocuments:
    """Tests for docs ranking."""

    def test_sorted_by_score_descending(self):
        records = [
            doc("https://forums.unrealengine.com/t/nanite-question"),
            doc("https://example.com/nanite"),
            doc("https://docs.unrealengine.com/en-US/nanite-virtualized-geometry"),
        ]
        results = rank_documents(records, ["nanite"], BOOSTS)
        assert [r.canonical_url for r in results] == [
            "https://docs.unrealengine.com/en-US/nanite-virtualized-geometry",
            "https://example.com/nanite",
        ]
        assert [r.score for r in results] == [5, 2]

    def test_ties_keep_discovery_order(self):
        records = [doc(f"https://example.com/nanite-{i}") for i in range(5)]
        results = rank_documents(records, ["nanite"])
        assert [r.canonical_url for r in results] == [f"https://example.com/nanite-{i}" for i in range(5)]

    def test_non_positive_scores_dropped(self):
        records = [doc("https://example.com/unrelated")]
        assert rank_documents(records, ["nanite"]) == []

    def test_limit_and_dedupe(self):
        records = [doc(f"https://example.com/nanite-{i % 15}") for i in range(30)]
        results = rank_documents(records, ["nanite"], limit=10)
        assert len(results) == 10
        assert len({r.canonical_url for r in results}) == 10
