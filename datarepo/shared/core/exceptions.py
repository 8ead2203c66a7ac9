"""
Custom Exceptions

Exceptions raised by the data-access layer, each carrying a status code
and a machine-readable error code so callers can translate them into
user-facing behaviour.

Exception Hierarchy:
====================
    DataRepoException (base, 500)
       │
       ├── ValidationError (400)        ← Usage error: missing or bad parameters
       │      └── InvalidFilterError    ← Unknown filter field or operator
       └── NotFoundError (404)          ← Resource not found
              └── RecordNotFoundError   ← No row with that id

Database failures (sqlalchemy.exc.SQLAlchemyError) are NOT wrapped. They
reach the caller unmodified as the backend failure.

Usage:
======
    from datarepo.shared.core.exceptions import RecordNotFoundError, ValidationError

    raise RecordNotFoundError("Article", 42)
    # Message: "Article with id '42' not found"

    raise ValidationError("order is required", details={"field": "order"})
"""

from typing import Any, Optional


class DataRepoException(Exception):
    """
    Base exception for all datarepo errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP-style status code (default 500)
        error_code: Machine-readable error code
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a serialisable dictionary.

        Returns:
            Dictionary with error code, message and details
        """
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# ═══════════════════════════════════════════════════════════════════════════════
# USAGE ERRORS (400)
# ═══════════════════════════════════════════════════════════════════════════════


class ValidationError(DataRepoException):
    """
    Usage error (400 Bad Request).

    Raised when a required parameter is absent or a supplied option
    cannot be interpreted, before any SQL is emitted.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class InvalidFilterError(ValidationError):
    """
    Filter refers to a column the entity does not map, or uses an
    operator the engine does not know.

    Example:
        raise InvalidFilterError("Unknown operator 'between'", field="price")
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        extra_details = details or {}
        if field is not None:
            extra_details["field"] = field
        super().__init__(message=message, details=extra_details)
        self.error_code = "INVALID_FILTER"


# ═══════════════════════════════════════════════════════════════════════════════
# NOT FOUND ERRORS (404)
# ═══════════════════════════════════════════════════════════════════════════════


class NotFoundError(DataRepoException):
    """
    Resource not found error (404 Not Found).

    Example:
        raise NotFoundError("Article", "42")
        # Message: "Article with id '42' not found"
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class RecordNotFoundError(NotFoundError):
    """No row of the given entity type exists with that primary key."""

    def __init__(self, resource: str, record_id: Any) -> None:
        super().__init__(resource=resource, resource_id=str(record_id))
        self.record_id = record_id
