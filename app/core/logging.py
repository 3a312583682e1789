"""
Structured Logging

structlog setup shared by the API server and the feed player. Development
gets the coloured console renderer, everything else one JSON object per
line. Each event carries the emitting module as ``logger`` and the process
role as ``service``.
"""

import logging
import sys

import structlog

from ..config import get_settings


def setup_logging(service: str = "volo-api"):
    """Configure structlog; DEBUG when ``settings.debug`` is on, INFO otherwise."""
    settings = get_settings()
    level = logging.DEBUG if settings.debug else logging.INFO

    # httpx and uvicorn log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service)


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger; binding stays lazy until the first event."""
    return structlog.get_logger(name)
