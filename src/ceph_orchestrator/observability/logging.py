"""
Structured logging configuration.

configure_structlog is called once at process start. Components never reach
for a global logger. They receive a bound logger in their constructor and fall
back to get_component_logger when the caller passes none.

Production output is JSON, development output is a colored console renderer.
The level comes from LOG_LEVEL.
"""

from __future__ import annotations

import logging
import os

import structlog
from structlog.typing import FilteringBoundLogger, Processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(environment: str = "production") -> None:
    """
    Configure structlog for the process.

    environment
    production renders JSON, anything else renders for a console.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_component_logger(component: str, **context: object) -> FilteringBoundLogger:
    """Return a logger with component and any extra context already bound."""
    return structlog.get_logger().bind(component=component, **context)
