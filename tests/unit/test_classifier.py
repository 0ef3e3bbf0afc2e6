"""Tests for store and page-shape classification."""

import pytest

from assetscout.state.models import OTHER_STORE, ResolvedRecord
from assetscout.tools.scraping.classifier import classify, classify_record
from assetscout.tools.scraping.registry import StoreRule

MARKET = "https://www.unrealengine.com/marketplace/en-US"


class TestMarketplaceClassification:
    """Tests for path-shaped store rules."""

    @pytest.mark.parametrize(
        "url",
        [
            f"{MARKET}/product/sword-animation-pack",
            f"{MARKET}/product/free-fantasy-icons",
            f"{MARKET}/product/search-and-rescue-kit",
            f"{MARKET}/product/collections-manager",
        ],
    )
    def test_product_pages_are_page_like(self, url, store_rules):
        assert classify(url, store_rules) == ("marketplace", True)

    @pytest.mark.parametrize(
        "url",
        [
            f"{MARKET}/content-cat/assets/animations",
            f"{MARKET}/search?q=sword",
            f"{MARKET}/free",
            f"{MARKET}/free/",
            f"{MARKET}/collections/summer-sale",
            f"{MARKET}/category/animations/product/x",
            f"{MARKET}/product/sword/page/2",
            f"{MARKET}/search/product/sword",
            "https://www.unrealengine.com/en-US/blog/marketplace-news",
        ],
    )
    def test_listing_pages_are_not_page_like(self, url, store_rules):
        store, is_page_like = classify(url, store_rules)
        assert store == "marketplace"
        assert is_page_like is False

    def test_lookalike_host_is_other(self, store_rules):
        """The host must be a store host, not merely start with one."""
        url = "https://www.unrealengine.com.evil.example/marketplace/en-US/product/x"
        assert classify(url, store_rules) == (OTHER_STORE, False)


class TestItchClassification:
    """Tests for subdomain-shaped store rules."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://creator.itch.io/rpg-icons",
            "https://creator.itch.io/",
        ],
    )
    def test_creator_pages_are_page_like(self, url, store_rules):
        assert classify(url, store_rules) == ("itch", True)

    @pytest.mark.parametrize(
        "url",
        [
            "https://itch.io/game-assets/free/tag-icons",
            "https://itch.io/search?q=rpg",
            "https://creator.itch.io/rpg-icons/devlog/1",
            "https://creator.itch.io/t/123/forum-topic",
        ],
    )
    def test_listing_pages_are_not_page_like(self, url, store_rules):
        store, is_page_like = classify(url, store_rules)
        assert store == "itch"
        assert is_page_like is False

    def test_suffix_requires_dot_boundary(self, store_rules):
        assert classify("https://notitch.io/game", store_rules) == (OTHER_STORE, False)


class TestClassify:
    """General classifier behaviour."""

    def test_unknown_host(self, store_rules):
        assert classify("https://forums.unrealengine.com/t/sword/1", store_rules) == (OTHER_STORE, False)

    def test_default_rules_loaded(self):
        """Omitted rules fall back to the bundled catalog."""
        assert classify(f"{MARKET}/product/x") == ("marketplace", True)

    def test_custom_rules(self):
        rules = [
            StoreRule(
                name="fab",
                hosts=["www.fab.com"],
                required_segments=["/listings/"],
                denied_patterns=[r"/search"],
            )
        ]
        assert classify("https://www.fab.com/listings/abc", rules) == ("fab", True)
        assert classify("https://www.fab.com/search/listings/abc", rules) == ("fab", False)

    def test_classify_record(self, store_rules):
        record = ResolvedRecord(
            title="Sword",
            raw_url="//duckduckgo.com/l/?uddg=x",
            canonical_url=f"{MARKET}/product/sword",
            source="marketplace:search:0",
        )
        classified = classify_record(record, store_rules)
        assert classified.store == "marketplace"
        assert classified.is_page_like is True
        assert classified.title == "Sword"
        assert classified.source == "marketplace:search:0"
