"""
Logging Configuration
=====================

Structured logging setup shared by the autowiring modules. Modules obtain
their loggers with ``structlog.get_logger(__name__)``; applications call
``configure_logging`` once at startup.
"""

import logging
import sys
from typing import Optional

import structlog

from ..config import AutowiredSettings, get_settings


def configure_logging(settings: Optional[AutowiredSettings] = None) -> None:
    """Configure stdlib logging and structlog from settings.

    Args:
        settings: Settings to use, defaults to ``get_settings()``
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
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
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["configure_logging"]
