"""Main entry point for the asset search API."""

from dotenv import load_dotenv
load_dotenv()  # Load .env into environment variables

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assetscout.api.middleware import RequestLoggingMiddleware
from assetscout.api.routes.assets import router as assets_router
from assetscout.api.routes.docs import router as docs_router
from assetscout.api.routes.pages import router as pages_router
from assetscout.config.settings import settings
from assetscout.logging import configure_logging

configure_logging()

logger = structlog.get_logger()

app = FastAPI(title="AssetScout API")

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(assets_router)
app.include_router(docs_router)
app.include_router(pages_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


def main():
    """Run the API server with uvicorn."""
    log_level = "info" if settings.environment == "production" else "warning"
    logger.info("Starting server", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=log_level)


if __name__ == "__main__":
    main()
