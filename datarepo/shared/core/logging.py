"""
Logging Configuration

Structured logging for the data-access layer, built on structlog.

Log Output:
===========
Development:
    2024-01-15 10:30:00 [debug    ] Listing records     model=Article order=id sort=desc

Other environments (JSON):
    {"timestamp": "2024-01-15T10:30:00", "level": "debug", "event": "Listing records", "model": "Article"}

Usage:
======
    from datarepo.shared.core.logging import logger, get_logger, log_context

    logger.info("Repository ready", model="Article")

    repo_logger = get_logger("datarepo.repositories")
    repo_logger.debug("Paginated query", model="Article", page=2, per_page=20)

    # Bind request-scoped values to every following log line
    log_context(request_id=request_id)
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.typing import Processor

from datarepo.config.settings import settings


def _processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        return processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return processors + [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog on top of the stdlib root logger.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
        json_logs: Render JSON lines; defaults to every environment
            except development

    SQLAlchemy's engine logger stays at WARNING unless DEBUG is set.
    Loggers are cached only in production.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    if json_logs is None:
        json_logs = not settings.is_development

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)

    structlog.configure(
        processors=_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.is_production,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, e.g. "datarepo.repositories"

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """
    Bind context variables that are merged into every subsequent log call.

    Args:
        **kwargs: Key-value pairs to add to log context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_log_context() -> None:
    """Drop all context variables bound with log_context()."""
    structlog.contextvars.clear_contextvars()


setup_logging()

logger = get_logger("datarepo")
