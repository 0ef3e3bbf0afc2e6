"""State model exports."""

from assetscout.state.models import (
    OTHER_STORE,
    PriceTag,
    PriceFilter,
    FailureKind,
    CandidateRecord,
    ResolvedRecord,
    ClassifiedRecord,
    AnnotatedRecord,
    RankedResult,
    SearchQuery,
    SourceFailure,
    SourceOutcome,
    ResultItem,
    SearchResponse,
    ErrorResponse,
    PageContent,
)

__all__ = [
    "OTHER_STORE",
    "PriceTag",
    "PriceFilter",
    "FailureKind",
    "CandidateRecord",
    "ResolvedRecord",
    "ClassifiedRecord",
    "AnnotatedRecord",
    "RankedResult",
    "SearchQuery",
    "SourceFailure",
    "SourceOutcome",
    "ResultItem",
    "SearchResponse",
    "ErrorResponse",
    "PageContent",
]
