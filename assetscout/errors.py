"""Error taxonomy for the search pipeline and its HTTP surface."""

from typing import Optional


class ScoutError(Exception):
    """Base class for errors raised by assetscout."""

    kind: str = "ScoutError"
    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Render as the public error payload."""
        payload = {"error": self.kind}
        detail = self.detail or self.message
        if detail:
            payload["detail"] = detail
        return payload


class InvalidQuery(ScoutError):
    """Bad or missing user input."""

    kind = "InvalidQuery"
    status_code = 400


class UpstreamFetchFailure(ScoutError):
    """A source could not be fetched (network error, timeout or non-2xx)."""

    kind = "UpstreamFetchFailure"
    status_code = 502


class ParseFailure(ScoutError):
    """A source payload could not be parsed."""

    kind = "ParseFailure"
    status_code = 502


class PipelineFailure(ScoutError):
    """Unexpected fault while aggregating or building a response."""

    kind = "PipelineFailure"
    status_code = 500
