"""Base extractor interface for raw source payloads."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel

from assetscout.state.models import CandidateRecord, FailureKind, SourceFailure

logger = structlog.get_logger()


class ExtractionContext(BaseModel):
    """Where a payload came from and how to complete its links."""

    source: str = ""
    url: Optional[str] = None
    base_url: str = "https://duckduckgo.com"
    product_url: Optional[str] = None  # template with {slug}
    selectors: Optional[dict] = None


class BaseExtractor(ABC):
    """Abstract base class for turning one raw payload into candidate records.

    Subclasses implement ``_extract``, which may raise on malformed input.
    The public ``extract`` never raises: a payload that cannot be parsed
    contributes no candidates.
    """

    kind: str = ""

    @abstractmethod
    def _extract(self, payload: str, context: ExtractionContext) -> Iterable[CandidateRecord]:
        """Yield candidate records found in ``payload``."""
        pass

    def extract(self, payload: str, context: ExtractionContext) -> list[CandidateRecord]:
        """Extract candidates, returning an empty list on any parse problem."""
        candidates, _ = self.extract_with_status(payload, context)
        return candidates

    def extract_with_status(
        self, payload: str, context: ExtractionContext
    ) -> tuple[list[CandidateRecord], Optional[SourceFailure]]:
        """Extract candidates and report a parse failure instead of raising.

        Args:
            payload: Raw HTML/XML/JSON body
            context: Source name, base URL and templates for this payload

        Returns:
            Tuple of (candidates, failure); failure is None on success
        """
        if not payload:
            return [], None

        try:
            candidates = list(self._extract(payload, context))
        except Exception as e:
            logger.warning(
                "Failed to parse payload",
                extractor=self.kind,
                source=context.source,
                error=str(e),
            )
            return [], SourceFailure(
                kind=FailureKind.PARSE,
                source=context.source,
                url=context.url,
                detail=str(e),
            )

        logger.debug(
            "Extracted candidates",
            extractor=self.kind,
            source=context.source,
            count=len(candidates),
        )
        return candidates, None

    @staticmethod
    def _clean(text: Optional[str]) -> str:
        """Collapse whitespace in element text."""
        if not text:
            return ""
        return " ".join(text.split())
