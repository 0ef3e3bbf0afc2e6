"""Configuration settings for the asset search proxy."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

CONFIG_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream requests
    user_agent: str = Field(
        default="AssetScout/1.1 (+educational)",
        description="User-Agent sent to search engines, stores and sitemaps",
    )
    http_timeout_seconds: float = Field(
        default=10.0, description="Timeout applied to every upstream fetch"
    )

    # Search engine endpoints
    search_engine_url: str = Field(
        default="https://duckduckgo.com/html/",
        description="Primary (GET) HTML search endpoint",
    )
    search_engine_fallback_url: str = Field(
        default="https://html.duckduckgo.com/html",
        description="Mirror (POST) endpoint used once when the primary yields nothing",
    )
    search_engine_region: str = Field(default="us-en", description="Region code (kl)")
    redirect_base_url: str = Field(
        default="https://duckduckgo.com",
        description="Origin used to resolve relative result links",
    )

    # Result caps
    max_asset_results: int = Field(default=12, description="Max results for asset search")
    max_doc_results: int = Field(default=10, description="Max results for docs search")
    sitemap_child_limit: int = Field(
        default=3, description="Child sitemaps fetched per sitemap index"
    )
    direct_store_sources: bool = Field(
        default=True,
        description="Also query each store's own search page, not only the search engine",
    )

    # Docs scoring
    term_match_weight: int = Field(default=2, description="Score per matched query term")
    keyword_bonus: int = Field(default=1, description="Bonus per domain keyword term")
    domain_keywords: list[str] = Field(default_factory=lambda: ["blueprint", "blueprints"])

    # Page reader
    reader_max_chars: int = Field(default=40000, description="Max characters of page text")
    reader_allowlist: list[str] = Field(
        default_factory=lambda: [
            "dev.epicgames.com",
            "docs.unrealengine.com",
            "forums.unrealengine.com",
            "www.unrealengine.com",
        ]
    )

    # Downstream cache directives
    assets_cache_seconds: int = Field(default=900, description="s-maxage for asset search")
    docs_cache_seconds: int = Field(default=1800, description="s-maxage for docs and pages")
    stale_while_revalidate_seconds: int = Field(default=120)

    # Catalog files
    stores_file: Path = Field(default=CONFIG_DIR / "stores.yaml")
    sitemaps_file: Path = Field(default=CONFIG_DIR / "sitemaps.yaml")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    environment: str = Field(
        default="development",
        description="Environment: 'development' or 'production'",
    )
    cors_origins: Optional[list[str]] = Field(default=None)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Optional[str] = Field(
        default=None,
        description="'json' or 'text'; defaults to json in production",
    )
    log_to_file: bool = Field(default=False)
    log_dir: Path = Field(default=Path("logs"))
    log_file_max_bytes: int = Field(default=10 * 1024 * 1024)
    log_file_backup_count: int = Field(default=5)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def cache_control(self, max_age: int) -> str:
        """Build a shared-cache Cache-Control header value."""
        return f"s-maxage={max_age}, stale-while-revalidate={self.stale_while_revalidate_seconds}"


settings = Settings()
