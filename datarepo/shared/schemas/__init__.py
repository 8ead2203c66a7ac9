"""
Schemas

Value objects passed into and returned from repositories.

Schema Categories:
==================
- common: Paginated results
- filters: Filter variants, ordering, list and pagination options

Usage:
======
    from datarepo.shared.schemas import EqualityFilter, OperatorFilter, PaginatedResponse
"""

from datarepo.shared.schemas.common import (
    PaginationMeta,
    PaginatedResponse,
)
from datarepo.shared.schemas.filters import (
    RESERVED_KEYS,
    EqualityFilter,
    OperatorFilter,
    FilterSpec,
    FilterInput,
    OrderSpec,
    TrashMode,
    ListOptions,
    PaginationOptions,
    parse_filter_spec,
    split_conditions,
)

__all__ = [
    # Common
    "PaginationMeta",
    "PaginatedResponse",
    # Filters
    "RESERVED_KEYS",
    "EqualityFilter",
    "OperatorFilter",
    "FilterSpec",
    "FilterInput",
    "OrderSpec",
    "TrashMode",
    "ListOptions",
    "PaginationOptions",
    "parse_filter_spec",
    "split_conditions",
]
