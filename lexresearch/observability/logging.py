"""
Structured logging setup for the research engine.

structlog over the standard library ``logging`` module. Every research
request binds ``request_id`` through ``structlog.contextvars`` so the stage
events of one request can be correlated.
"""

import logging
import sys
from typing import Optional

import structlog

from libs.common.settings import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the processor chain; JSON output unless ``log_json`` is off."""
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer(colors=settings.is_development)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure structlog repeatedly
        cache_logger_on_first_use=not settings.is_test,
    )


def bind_request(request_id: str) -> None:
    """Attach ``request_id`` to every event logged in the current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def unbind_request() -> None:
    structlog.contextvars.unbind_contextvars("request_id")
