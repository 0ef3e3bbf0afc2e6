"""Structured logging for the search proxy.

Every event carries a ``category`` so searches, upstream fetches and API
traffic can be filtered apart. Output goes to stdout (colored text while
developing, JSON lines in production) and optionally to a rotating file.
Levels, format and file rotation come from ``Settings``.
"""

import logging
import sys
import time
from contextvars import ContextVar
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

import structlog

from assetscout.config.settings import Settings, settings as default_settings

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_environment = default_settings.environment

LOG_FILE_NAME = "assetscout.log"
MAX_FIELD_LENGTH = 100


class EventCategory(str, Enum):
    """Value of the ``category`` field on emitted events."""
    SEARCH = "search"
    SCRAPING = "scraping"
    SYSTEM = "system"
    ERROR = "error"
    PERFORMANCE = "performance"


def output_format(config: Settings) -> str:
    """Explicit ``log_format`` wins; otherwise JSON in production, text elsewhere."""
    if config.log_format:
        return config.log_format.lower()
    return "json" if config.environment == "production" else "text"


def setup_file_logging(config: Settings) -> Optional[logging.Handler]:
    """Rotating file handler under ``log_dir``, or None when file logging is off."""
    if not config.log_to_file:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        config.log_dir / LOG_FILE_NAME,
        maxBytes=config.log_file_max_bytes,
        backupCount=config.log_file_backup_count,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def add_request_context(logger, method_name, event_dict):
    """Attach the id of the request being served, if any."""
    request_id = _request_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_environment_context(logger, method_name, event_dict):
    event_dict["env"] = _environment
    return event_dict


def _processors(fmt: str) -> list:
    renderer = structlog.processors.JSONRenderer() if fmt == "json" else structlog.dev.ConsoleRenderer(colors=True)
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_request_context,
        add_environment_context,
        renderer,
    ]


def configure_logging(config: Optional[Settings] = None):
    """Route structlog through the stdlib root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    global _environment
    config = config or default_settings
    _environment = config.environment
    level = logging.getLevelName(config.log_level.upper())
    fmt = output_format(config)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    file_handler = setup_file_logging(config)
    if file_handler:
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=_processors(fmt),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).info(
        "logging_configured",
        environment=config.environment,
        log_level=config.log_level,
        log_format=fmt,
        file_logging=file_handler is not None,
    )


def set_request_context(request_id: Optional[str] = None):
    if request_id:
        _request_id.set(request_id)


def clear_request_context():
    _request_id.set(None)


logger = structlog.get_logger(__name__)


def _truncate(value: Optional[str]) -> Optional[str]:
    return value[:MAX_FIELD_LENGTH] if value else value


def _emit(level: str, event: str, category: EventCategory, **fields: Any):
    getattr(logger, level)(event, category=category.value, **fields)


def log_search(
    query: str,
    mode: str,
    results_count: int,
    sources: list[str],
    duration_ms: float,
    degraded_sources: Optional[list[str]] = None,
):
    """Record one finished search.

    Args:
        query: Search text as received
        mode: "assets" or the docs sitemap mode
        results_count: Number of results returned
        sources: Retrieval units that were queried
        duration_ms: Wall time of the whole search
        degraded_sources: Units that recorded a fetch or parse failure
    """
    _emit(
        "info",
        "search",
        EventCategory.SEARCH,
        query=query,
        mode=mode,
        results_count=results_count,
        sources=sources,
        degraded_sources=degraded_sources or [],
        duration_ms=duration_ms,
    )


def log_scrape(
    source: str,
    url: str,
    success: bool,
    duration_ms: float,
    items_found: int = 0,
    error: Optional[str] = None,
):
    """Record one upstream fetch-and-extract step; failures log as warnings."""
    _emit(
        "info" if success else "warning",
        "scrape",
        EventCategory.SCRAPING,
        source=source,
        url=_truncate(url),
        success=success,
        duration_ms=duration_ms,
        items_found=items_found,
        error=error,
    )


def _status_level(status_code: int) -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    return "info"


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_agent: Optional[str] = None,
    error: Optional[str] = None,
):
    _emit(
        _status_level(status_code),
        "api_request",
        EventCategory.SYSTEM,
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
        user_agent=_truncate(user_agent),
        error=error,
    )


def log_error(error_type: str, message: str, context: Optional[dict] = None):
    """Record an error that is about to be surfaced to the caller."""
    _emit("error", "error", EventCategory.ERROR, error_type=error_type, message=message, context=context or {})


class LogTimer:
    """Times a block and logs it under ``operation``.

    ``duration_ms`` is readable once the block exits. A block that raises
    is logged at error level and the exception propagates.
    """

    def __init__(self, operation: str, **extra_fields):
        self.operation = operation
        self.extra_fields = extra_fields
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        fields = dict(self.extra_fields, duration_ms=self.duration_ms, success=exc_type is None)
        if exc_type is not None:
            fields["error"] = str(exc_val)
        _emit("debug" if exc_type is None else "error", self.operation, EventCategory.PERFORMANCE, **fields)
        return False
