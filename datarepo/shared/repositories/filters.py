"""
Query Filter Engine

Turns filter specs and list options into SQLAlchemy constraints. Every
function takes a statement and returns a new one, so the same helpers
compose Select, Update and Delete statements.

Composition Order:
==================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        QUERY COMPOSITION                                    │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   1. parse_filter_spec()   strip order/sort/page, decide the filter shape   │
│   2. filter clauses        equality or operator constraints, ANDed          │
│   3. list options          created_at range, is_active, keyword OR-search   │
│   4. apply_ordering()      ORDER BY, always last                            │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘

Usage:
======
    stmt = apply_filters(select(Article), Article, {"status": "draft", "order": "id"})

    SQL Generated:
        SELECT * FROM articles WHERE status = 'draft' ORDER BY id ASC
"""

import operator
from datetime import datetime, time, timezone, tzinfo
from functools import lru_cache
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar
from zoneinfo import ZoneInfo

from sqlalchemy import String, cast, false, inspect, or_
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql import ColumnElement

from datarepo.config.settings import settings
from datarepo.shared.core.exceptions import InvalidFilterError
from datarepo.shared.core.logging import get_logger
from datarepo.shared.schemas.filters import (
    EqualityFilter,
    FilterInput,
    FilterSpec,
    ListOptions,
    OrderSpec,
    parse_filter_spec,
)


logger = get_logger("datarepo.filters")

# Select, Update and Delete all expose .where()
StatementType = TypeVar("StatementType")


def _like(column: Any, value: Any) -> ColumnElement:
    return column.like(f"%{value}%")


def _not_like(column: Any, value: Any) -> ColumnElement:
    return column.not_like(f"%{value}%")


def _ilike(column: Any, value: Any) -> ColumnElement:
    return column.ilike(f"%{value}%")


# Operator name (lower-case) → clause builder
OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "like": _like,
    "not like": _not_like,
    "ilike": _ilike,
}


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMA INTROSPECTION
# ═══════════════════════════════════════════════════════════════════════════════


@lru_cache(maxsize=None)
def column_names(model: type) -> tuple[str, ...]:
    """
    Mapped column attribute names of an entity type, in mapper order.

    Read from the mapper, not the live database, and cached for the
    process lifetime.
    """
    return tuple(prop.key for prop in inspect(model).column_attrs)


def resolve_column(model: type, field: str) -> InstrumentedAttribute:
    """
    Look up a mapped column attribute by name.

    Raises:
        InvalidFilterError: If the entity does not map that column
    """
    if field not in column_names(model):
        logger.warning("Unknown filter field", model=model.__name__, field=field)
        raise InvalidFilterError(
            f"{model.__name__} has no column '{field}'",
            field=field,
        )
    return getattr(model, field)


def searchable_columns(
    model: type,
    fields: Optional[Sequence[str]] = None,
) -> list[InstrumentedAttribute]:
    """
    Columns scanned by keyword search.

    Args:
        model: Entity type
        fields: Explicit column names; every mapped column when None
    """
    names = column_names(model) if fields is None else fields
    return [resolve_column(model, name) for name in names]


# ═══════════════════════════════════════════════════════════════════════════════
# CLAUSE BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════


def operator_clause(column: Any, op: str, value: Any) -> ColumnElement:
    """
    Build ``column <op> value``.

    like / not like / ilike wrap the value as a substring pattern.

    Raises:
        InvalidFilterError: For operators outside OPERATORS
    """
    builder = OPERATORS.get(str(op).strip().lower())
    if builder is None:
        raise InvalidFilterError(f"Unsupported filter operator '{op}'", field=column.key)
    return builder(column, value)


def _filter_clauses(model: type, spec: FilterSpec) -> list[ColumnElement]:
    clauses: list[ColumnElement] = []

    if isinstance(spec, EqualityFilter):
        for field, value in spec.conditions.items():
            clauses.append(resolve_column(model, field) == value)
        return clauses

    for field, comparisons in spec.conditions.items():
        column = resolve_column(model, field)
        if not isinstance(comparisons, Mapping):
            raise InvalidFilterError(
                f"Operator filter on '{field}' must map values to operators",
                field=field,
            )
        for value, op in comparisons.items():
            clauses.append(operator_clause(column, op, value))
    return clauses


def keyword_clause(keyword: str, columns: Sequence[Any]) -> ColumnElement:
    """
    OR of substring matches of ``keyword`` against every column.

    Columns are cast to text so numeric and date columns match too.

    SQL Generated:
        (CAST(id AS VARCHAR) LIKE '%kw%' OR CAST(title AS VARCHAR) LIKE '%kw%' ...)
    """
    if not columns:
        return false()
    pattern = f"%{keyword}%"
    return or_(*(cast(column, String).like(pattern) for column in columns))


def query_timezone(name: Optional[str] = None) -> tzinfo:
    """Timezone in which from/to calendar dates are read."""
    name = name or settings.QUERY_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def date_range_clauses(
    column: Any,
    from_: Optional[Any] = None,
    to: Optional[Any] = None,
    tz: Optional[tzinfo] = None,
) -> list[ColumnElement]:
    """
    Inclusive calendar-day bounds on a timestamp column.

    ``from_`` starts at 00:00:00 and ``to`` ends at 23:59:59.999999 of
    their day in ``tz``. Bounds are converted to UTC before binding.
    SQLite drops tzinfo on bind, so timestamps there must be stored as UTC.
    """
    tz = tz or query_timezone()
    clauses = []
    if from_ is not None:
        clauses.append(column >= datetime.combine(from_, time.min, tzinfo=tz).astimezone(timezone.utc))
    if to is not None:
        clauses.append(column <= datetime.combine(to, time.max, tzinfo=tz).astimezone(timezone.utc))
    return clauses


# ═══════════════════════════════════════════════════════════════════════════════
# STATEMENT COMPOSITION
# ═══════════════════════════════════════════════════════════════════════════════


def apply_ordering(stmt: StatementType, model: type, order: OrderSpec) -> StatementType:
    """Append ORDER BY for a single column."""
    column = resolve_column(model, order.field)
    return stmt.order_by(column.desc() if order.direction == "desc" else column.asc())


def apply_filters(
    stmt: StatementType,
    model: type,
    filters: Optional[FilterInput],
    apply_order: bool = True,
) -> StatementType:
    """
    Constrain a statement by a filter spec.

    order/sort/page are removed before the spec is read. When nothing
    else remains the statement comes back untouched, ordering included.
    Equality specs AND one ``column = value`` per field. Operator specs
    AND one clause per (value, operator) pair. Ordering, when requested
    and present, is appended after all constraints.

    Args:
        stmt: Select, Update or Delete statement
        model: Entity type the statement targets
        filters: Typed FilterSpec or plain mapping
        apply_order: Append ORDER BY from the spec's order/sort

    Returns:
        New statement with the constraints applied

    Raises:
        InvalidFilterError: Unknown column, operator or sort direction

    Example:
        apply_filters(select(Article), Article, {"title": {"sql": "like"}, "views": {10: ">"}})

    SQL Generated:
        SELECT * FROM articles WHERE title LIKE '%sql%' AND views > 10
    """
    spec, order = parse_filter_spec(filters)
    if spec is None:
        return stmt

    clauses = _filter_clauses(model, spec)
    stmt = stmt.where(*clauses)

    if apply_order and order is not None:
        stmt = apply_ordering(stmt, model, order)

    return stmt


def apply_list_options(
    stmt: StatementType,
    model: type,
    options: ListOptions,
    columns: Optional[Sequence[Any]] = None,
) -> StatementType:
    """
    Apply from/to, active and keyword narrowing. Does not order.

    Args:
        stmt: Select statement
        model: Entity type
        options: Parsed ListOptions (or PaginationOptions)
        columns: Keyword search columns; all mapped columns when None

    SQL Generated:
        WHERE created_at >= '2024-01-01 00:00:00'
          AND created_at <= '2024-01-31 23:59:59.999999'
          AND is_active = true
          AND (CAST(id AS VARCHAR) LIKE '%kw%' OR ...)
    """
    if options.from_ is not None or options.to is not None:
        created_at = resolve_column(model, "created_at")
        stmt = stmt.where(*date_range_clauses(created_at, options.from_, options.to))

    if options.active is not None:
        stmt = stmt.where(resolve_column(model, "is_active") == options.active)

    if options.keyword is not None:
        if columns is None:
            columns = searchable_columns(model)
        stmt = stmt.where(keyword_clause(options.keyword, columns))

    return stmt
