"""API routes for sitemap-driven documentation search."""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from assetscout.api.routes.assets import error_response, validate_query
from assetscout.config.settings import settings
from assetscout.errors import InvalidQuery, PipelineFailure
from assetscout.logging import log_error
from assetscout.state.models import SearchResponse
from assetscout.tools.pipeline import search_docs

router = APIRouter(prefix="/api", tags=["docs"])


@router.get("/search")
async def search_documentation(q: Optional[str] = None, only: Optional[str] = None):
    """Search the docs, forums or marketplace sitemaps for matching pages."""
    try:
        text = validate_query(q)
    except InvalidQuery as e:
        return error_response(e)

    try:
        result = await search_docs(text, mode=only)
        body = SearchResponse(
            query=text,
            count=len(result.results),
            results=[r.to_document_item() for r in result.results],
            mode=result.mode,
        )
    except Exception as e:
        log_error("PipelineFailure", str(e), {"query": text, "only": only})
        return error_response(PipelineFailure("Search failed", detail=str(e)))

    return JSONResponse(
        content=body.model_dump(exclude_none=True),
        headers={"Cache-Control": settings.cache_control(settings.docs_cache_seconds)},
    )
