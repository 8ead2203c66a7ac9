"""
Filter Schemas

Value objects describing what a repository query should match, how it is
ordered and how it is paged.

Filter Shapes:
==============
    Equality (one-dimensional):
        {"status": "published", "author_id": 7}
        → status = 'published' AND author_id = 7

    Operator (two-dimensional):
        {"title": {"intro": "like"}, "views": {100: ">=", 500: "<"}}
        → title LIKE '%intro%' AND views >= 100 AND views < 500

Callers that know the shape build EqualityFilter / OperatorFilter directly.
Plain mappings coming from request data go through parse_filter_spec(),
which strips the reserved keys and sniffs the shape: one nested mapping
anywhere turns the WHOLE mapping into operator form.

Reserved Keys:
==============
    order, sort, page are never filter fields. order/sort become an
    OrderSpec; page is consumed by pagination.

Usage:
======
    from datarepo.shared.schemas.filters import EqualityFilter, ListOptions

    spec = EqualityFilter({"status": "draft"})
    options = ListOptions.from_mapping({"keyword": "sql", "from": "2024-01-01"})
"""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from datarepo.config.settings import settings
from datarepo.shared.core.exceptions import InvalidFilterError, ValidationError


RESERVED_KEYS = ("order", "sort", "page")

SortDirection = Literal["asc", "desc"]


# ═══════════════════════════════════════════════════════════════════════════════
# ORDERING & TRASH VISIBILITY
# ═══════════════════════════════════════════════════════════════════════════════


def normalize_direction(direction: Any) -> str:
    """
    Lower-case a sort direction and check it is asc or desc.

    Raises:
        InvalidFilterError: For any other value
    """
    value = str(direction).strip().lower()
    if value not in ("asc", "desc"):
        raise InvalidFilterError(
            f"Sort direction must be 'asc' or 'desc', got '{direction}'",
            field="sort",
        )
    return value


@dataclass(frozen=True)
class OrderSpec:
    """ORDER BY a single column."""

    field: str
    direction: str = "asc"

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", normalize_direction(self.direction))


class TrashMode(str, Enum):
    """Visibility of soft-deleted rows. Ignored by models without deleted_at."""

    EXCLUDE = "exclude"
    WITH = "with"
    ONLY = "only"


# ═══════════════════════════════════════════════════════════════════════════════
# FILTER VARIANTS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EqualityFilter:
    """Every field must equal its value. Constraints are ANDed."""

    conditions: Mapping[str, Any]
    order: Optional[OrderSpec] = None


@dataclass(frozen=True)
class OperatorFilter:
    """
    Every field maps comparison values to operators.

    Example:
        OperatorFilter({"price": {10: ">=", 20: "<"}})
    """

    conditions: Mapping[str, Mapping[Any, str]]
    order: Optional[OrderSpec] = None


FilterSpec = Union[EqualityFilter, OperatorFilter]
FilterInput = Union[FilterSpec, Mapping[str, Any]]


def _count_recursive(values: Mapping[Any, Any]) -> int:
    total = 0
    for value in values.values():
        total += 1
        if isinstance(value, Mapping):
            total += _count_recursive(value)
    return total


def is_operator_form(conditions: Mapping[str, Any]) -> bool:
    """
    Shape heuristic for untyped filter mappings.

    Counts every value recursively and compares it with the number of
    top-level keys. Any non-empty nested mapping makes the count larger.
    """
    return _count_recursive(conditions) > len(conditions)


def split_reserved(raw: Mapping[str, Any]) -> tuple[dict[str, Any], Optional[OrderSpec]]:
    """
    Remove order/sort/page from a filter mapping.

    Returns:
        (remaining filter fields, OrderSpec or None if no order given)
    """
    remaining = dict(raw)
    order_by = remaining.pop("order", None)
    sort_by = remaining.pop("sort", None)
    remaining.pop("page", None)

    order = None
    if order_by:
        order = OrderSpec(field=str(order_by), direction=sort_by or "asc")
    return remaining, order


def parse_filter_spec(
    raw: Optional[FilterInput],
) -> tuple[Optional[FilterSpec], Optional[OrderSpec]]:
    """
    Turn caller-supplied filters into a typed variant plus ordering.

    Reserved keys are stripped from both forms. Typed variants keep their
    shape; mappings have it decided by is_operator_form().

    Args:
        raw: EqualityFilter, OperatorFilter, plain mapping or None

    Returns:
        (FilterSpec or None when nothing is left to filter on, OrderSpec or None)
    """
    if raw is None:
        return None, None

    if isinstance(raw, (EqualityFilter, OperatorFilter)):
        conditions = {key: value for key, value in raw.conditions.items() if key not in RESERVED_KEYS}
        if not conditions:
            return None, raw.order
        if len(conditions) != len(raw.conditions):
            raw = replace(raw, conditions=conditions)
        return raw, raw.order

    remaining, order = split_reserved(raw)
    if not remaining:
        return None, order

    if is_operator_form(remaining):
        return OperatorFilter(remaining), order
    return EqualityFilter(remaining), order


def split_conditions(conditions: Optional[Mapping[str, Any]]) -> tuple[bool, dict[str, Any]]:
    """Separate the trash flag from the secondary conditions of list_paginated."""
    remaining = dict(conditions or {})
    trash = bool(remaining.pop("trash", False))
    return trash, remaining


# ═══════════════════════════════════════════════════════════════════════════════
# LIST & PAGINATION OPTIONS
# ═══════════════════════════════════════════════════════════════════════════════


class ListOptions(BaseModel):
    """
    Options understood by BaseRepository.list().

    Defaults: newest first (order=id, sort=desc), no narrowing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order: str = "id"
    sort: SortDirection = "desc"
    from_: Optional[date] = Field(default=None, alias="from")
    to: Optional[date] = None
    active: Optional[bool] = None
    keyword: Optional[str] = None

    @field_validator("sort", mode="before")
    @classmethod
    def _lower_sort(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("keyword", mode="before")
    @classmethod
    def _blank_keyword(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def order_spec(self) -> OrderSpec:
        return OrderSpec(field=self.order, direction=self.sort)

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]] = None):
        """
        Build options from a caller's plain mapping.

        Unknown keys are ignored. None values count as absent.

        Raises:
            ValidationError: If a value cannot be interpreted
        """
        data = {key: value for key, value in (raw or {}).items() if value is not None}
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {cls.__name__}",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e


class PaginationOptions(ListOptions):
    """
    Options understood by BaseRepository.list_paginated().

    order and sort have no defaults here.
    """

    order: str
    sort: SortDirection
    per_page: int = Field(
        default_factory=lambda: settings.DEFAULT_PER_PAGE,
        ge=1,
        alias="perPage",
    )
    page: int = Field(default=1, ge=1)
    export: bool = False

    @field_validator("export", mode="before")
    @classmethod
    def _export_when_present(cls, value: Any) -> bool:
        # Any supplied value asks for the query, "0" and "false" included
        return value is not None

    @property
    def offset(self) -> int:
        """Rows to skip for the requested page."""
        return (self.page - 1) * self.per_page
