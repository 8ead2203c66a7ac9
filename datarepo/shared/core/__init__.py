"""
Core Module

Logging and exceptions shared by every repository.

Usage:
======
    from datarepo.shared.core import logger, RecordNotFoundError

    logger.info("Starting import", model="Article")
"""

from datarepo.shared.core.logging import (
    logger,
    get_logger,
    log_context,
    clear_log_context,
)
from datarepo.shared.core.exceptions import (
    DataRepoException,
    ValidationError,
    InvalidFilterError,
    NotFoundError,
    RecordNotFoundError,
)

__all__ = [
    # Logging
    "logger",
    "get_logger",
    "log_context",
    "clear_log_context",
    # Exceptions
    "DataRepoException",
    "ValidationError",
    "InvalidFilterError",
    "NotFoundError",
    "RecordNotFoundError",
]
