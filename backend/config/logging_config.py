"""
Structured logging configuration for the analysis service.

Every entry carries an ISO timestamp, the level, the logger name and any
bound request or analysis context. Clinical note text must not reach the
logs in full: string values longer than ``log_max_value_length`` are cut
by a processor before rendering.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from config.config import get_settings


def truncate_long_values(max_length: int) -> Processor:
    """Build a processor that shortens oversized string fields."""

    def processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if key != "event" and isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}... [{len(value) - max_length} chars truncated]"
        return event_dict

    return processor


def configure_logging() -> None:
    """
    Configure structlog and the stdlib root logger.

    JSON lines when ``log_format`` is "json", coloured console output otherwise.
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        truncate_long_values(settings.log_max_value_length),
    ]

    if settings.log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
        processors = shared_processors + [structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not settings.is_production)
        processors = shared_processors + [renderer]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route uvicorn and library records through the same renderer
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.log_level.upper())

    for noisy in ("uvicorn.access", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_request_context(request_id: str, method: str, path: str, **extra: Any) -> None:
    """Start a fresh context for one HTTP request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        http_method=method,
        http_path=path,
        **extra,
    )


@contextmanager
def analysis_context(**fields: Any) -> Iterator[None]:
    """Bind analysis fields (vocabulary version, reviewer switch) for the enclosed block."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield
