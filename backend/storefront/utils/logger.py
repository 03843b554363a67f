"""Logging configuration."""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from storefront.config import Settings, get_settings

# Chatty libraries that only matter when something is wrong
_QUIET_LOGGERS = ("uvicorn", "httpx", "httpcore", "pymongo", "motor")


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for the service."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        "Logging configured: level=%s, format=%s",
        settings.log_level,
        settings.log_format,
        extra={"environment": settings.environment},
    )
