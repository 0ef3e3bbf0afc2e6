"""Record and response models for the search pipeline."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

OTHER_STORE = "other"
INFERRED_SUFFIX = " (inferred)"
UNKNOWN_LABEL = "Unknown"


class PriceTag(str, Enum):
    """Price tier inferred from free text."""

    FREE = "free"
    PAID = "paid"
    UNKNOWN = "unknown"


class PriceFilter(str, Enum):
    """Price filter requested by the caller."""

    FREE = "free"
    PAID = "paid"
    ANY = "any"


class FailureKind(str, Enum):
    """Kinds of non-fatal, per-source failures."""

    UPSTREAM_FETCH = "UpstreamFetchFailure"
    PARSE = "ParseFailure"


class CandidateRecord(BaseModel):
    """A page found in a raw source payload, before classification."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    raw_url: str
    snippet: str = ""
    source: str = ""


class ResolvedRecord(CandidateRecord):
    """Candidate with its canonical URL (the deduplication key)."""

    canonical_url: str


class ClassifiedRecord(ResolvedRecord):
    """Resolved record labelled with its store and page shape."""

    store: str = OTHER_STORE
    is_page_like: bool = False


class AnnotatedRecord(ClassifiedRecord):
    """Classified record with inferred price and license tags."""

    price_tag: PriceTag = PriceTag.UNKNOWN
    license_tag: Optional[str] = None  # None means unknown

    @property
    def display_title(self) -> str:
        """Title, or a title derived from the URL when the source had none."""
        from assetscout.tools.scraping.urls import title_from_url

        return self.title.strip() or title_from_url(self.canonical_url) or self.canonical_url

    @property
    def price_label(self) -> str:
        if self.price_tag == PriceTag.UNKNOWN:
            return UNKNOWN_LABEL
        return self.price_tag.value.capitalize() + INFERRED_SUFFIX

    @property
    def license_label(self) -> str:
        if not self.license_tag:
            return UNKNOWN_LABEL
        return self.license_tag + INFERRED_SUFFIX


class RankedResult(AnnotatedRecord):
    """Final, ordered result exposed to the caller."""

    score: Optional[int] = None

    def to_asset_item(self) -> "ResultItem":
        return ResultItem(
            title=self.display_title,
            url=self.canonical_url,
            store=self.store,
            price=self.price_label,
            license=self.license_label,
            snippet=self.snippet.strip() or None,
        )

    def to_document_item(self) -> "ResultItem":
        return ResultItem(
            title=self.display_title,
            url=self.canonical_url,
            snippet=self.snippet.strip(),
            score=self.score,
        )


class SearchQuery(BaseModel):
    """User search terms plus scoped options. Never mutated."""

    model_config = ConfigDict(frozen=True)

    text: str
    only: str = "all"
    price: PriceFilter = PriceFilter.ANY
    license: Optional[str] = None
    kind: Optional[str] = None

    @property
    def terms(self) -> str:
        """Search text with the optional kind appended."""
        parts = [self.text.strip()]
        if self.kind and self.kind.strip():
            parts.append(self.kind.strip())
        return " ".join(parts)


class SourceFailure(BaseModel):
    """A recorded, non-fatal failure of one source."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    source: str
    url: Optional[str] = None
    detail: Optional[str] = None


class SourceOutcome(BaseModel):
    """Candidates produced by one retrieval unit plus any recorded failures."""

    source: str
    candidates: list[CandidateRecord] = Field(default_factory=list)
    failures: list[SourceFailure] = Field(default_factory=list)
    fallback_used: bool = False

    @property
    def degraded(self) -> bool:
        """True when at least one fetch or parse failed for this unit."""
        return bool(self.failures)


class ResultItem(BaseModel):
    """One result as returned over HTTP."""

    title: str
    url: str
    store: Optional[str] = None
    price: Optional[str] = None
    license: Optional[str] = None
    snippet: Optional[str] = None
    score: Optional[int] = None


class SearchResponse(BaseModel):
    """Successful search response."""

    query: str
    count: int
    results: list[ResultItem] = Field(default_factory=list)
    mode: Optional[str] = None


class ErrorResponse(BaseModel):
    """Failure response."""

    error: str
    detail: Optional[str] = None


class PageContent(BaseModel):
    """Cleaned text of an allowlisted page."""

    url: str
    title: str
    length: int
    content: str
