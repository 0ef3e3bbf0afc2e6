"""API routes for reading allowlisted documentation pages."""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from assetscout.api.routes.assets import error_response
from assetscout.config.settings import settings
from assetscout.errors import InvalidQuery, PipelineFailure, UpstreamFetchFailure
from assetscout.logging import log_error
from assetscout.tools.scraping.reader import is_allowed, read_page

router = APIRouter(prefix="/api", tags=["pages"])


@router.get("/fetch")
async def fetch_page(url: Optional[str] = None):
    """Fetch an Epic/Unreal page and return its readable text."""
    if not is_allowed(url):
        return error_response(InvalidQuery("URL not allowed", detail="Only Epic/Unreal documentation hosts can be fetched"))

    try:
        page = await read_page(url.strip())
    except UpstreamFetchFailure as e:
        log_error(e.kind, e.message, {"url": url})
        return error_response(e)
    except Exception as e:
        log_error("PipelineFailure", str(e), {"url": url})
        return error_response(PipelineFailure("Fetch failed", detail=str(e)))

    return JSONResponse(
        content=page.model_dump(),
        headers={"Cache-Control": settings.cache_control(settings.docs_cache_seconds)},
    )
