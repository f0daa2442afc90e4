from __future__ import annotations

import logging
import sys
from typing import cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from devflow_api.config.settings import Settings

# Chatty third-party loggers and the level they are held at unless debugging.
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "passlib": logging.ERROR,
    "httpx": logging.WARNING,
}


def _renderer(settings: Settings) -> list[Processor]:
    if settings.log_json or settings.is_production:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging(settings: Settings) -> None:
    """Configure structlog and stdlib logging at the configured level.

    Every event carries the app name and environment. JSON output is used in
    production or when ``log_json`` is set; otherwise the console renderer.
    """

    level = logging.getLevelNamesMapping()[settings.log_level]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(app=settings.app_name, env=settings.environment)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            *_renderer(settings),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    for name, quiet_level in _QUIET_LOGGERS.items():
        if settings.db_echo and name == "sqlalchemy.engine":
            continue
        logging.getLogger(name).setLevel(max(level, quiet_level))


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    return cast(FilteringBoundLogger, structlog.get_logger(name))


__all__ = ["configure_logging", "get_logger"]
