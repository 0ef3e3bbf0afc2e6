"""API routes for multi-store asset search."""

from typing import Optional

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from assetscout.config.settings import settings
from assetscout.errors import InvalidQuery, PipelineFailure, ScoutError
from assetscout.logging import log_error
from assetscout.state.models import ErrorResponse, PriceFilter, SearchQuery, SearchResponse
from assetscout.tools.pipeline import search_assets
from assetscout.tools.scraping.registry import ExtractorRegistry

router = APIRouter(prefix="/api", tags=["assets"])
logger = structlog.get_logger()

MIN_QUERY_LENGTH = 2


def error_response(error: ScoutError) -> JSONResponse:
    """Render a ScoutError as ``{error, detail}`` with its status code."""
    body = ErrorResponse(**error.to_dict())
    return JSONResponse(status_code=error.status_code, content=body.model_dump(exclude_none=True))


def store_scopes() -> list[str]:
    """Values accepted for ``only``: every catalog store plus "all"."""
    return ExtractorRegistry.list_stores() + ["all"]


def validate_query(q: Optional[str]) -> str:
    text = (q or "").strip()
    if len(text) < MIN_QUERY_LENGTH:
        raise InvalidQuery("Query too short", detail=f"q must be at least {MIN_QUERY_LENGTH} characters")
    return text


def parse_price(price: Optional[str]) -> PriceFilter:
    try:
        return PriceFilter((price or "any").strip().lower())
    except ValueError:
        return PriceFilter.ANY


@router.get("/assets")
async def get_assets(
    q: Optional[str] = None,
    only: str = "all",
    price: str = "any",
    license: Optional[str] = None,
    kind: Optional[str] = None,
):
    """Search Unreal Marketplace and itch.io for product pages.

    Unknown ``only`` values search every store; unknown ``price`` values
    apply no price filter. An empty result set is still a success.
    """
    try:
        text = validate_query(q)
    except InvalidQuery as e:
        return error_response(e)

    scopes = store_scopes()
    scope = (only or "all").strip().lower()
    if scope not in scopes:
        logger.info("Unknown store scope, searching all stores", only=only)
    query = SearchQuery(
        text=text,
        only=scope if scope in scopes else "all",
        price=parse_price(price),
        license=license or None,
        kind=kind or None,
    )

    try:
        result = await search_assets(query)
        body = SearchResponse(
            query=text,
            count=len(result.results),
            results=[r.to_asset_item() for r in result.results],
        )
    except Exception as e:
        log_error("PipelineFailure", str(e), {"query": text, "only": query.only})
        return error_response(PipelineFailure("Search failed", detail=str(e)))

    return JSONResponse(
        content=body.model_dump(exclude_none=True),
        headers={"Cache-Control": settings.cache_control(settings.assets_cache_seconds)},
    )
