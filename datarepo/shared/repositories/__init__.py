"""
Repository Pattern Implementation

Repositories wrap an async SQLAlchemy session and translate loosely
structured filter mappings into queries for any mapped entity type.

Repository Hierarchy:
=====================
    BaseRepositoryInterface[T]          ← Abstract contract
         │
         └── BaseRepository[ModelType]  ← SQLAlchemy implementation
                  │
                  └── YourRepository    ← Entity-specific queries

Query Filter Engine:
====================
    filters.apply_filters()       Equality / operator constraints + ordering
    filters.apply_list_options()  from/to, active, keyword narrowing

Usage Example:
==============
    from datarepo.shared.db import session_scope
    from datarepo.shared.repositories import BaseRepository

    async with session_scope() as session:
        repo = BaseRepository(Article, session)
        page = await repo.list_paginated({"order": "id", "sort": "desc", "perPage": 10})
"""

from datarepo.shared.repositories.interface import BaseRepositoryInterface
from datarepo.shared.repositories.base import BaseRepository
from datarepo.shared.repositories.filters import (
    OPERATORS,
    apply_filters,
    apply_list_options,
    apply_ordering,
    column_names,
    resolve_column,
    searchable_columns,
)

__all__ = [
    # Contract and base class
    "BaseRepositoryInterface",
    "BaseRepository",
    # Query filter engine
    "OPERATORS",
    "apply_filters",
    "apply_list_options",
    "apply_ordering",
    "column_names",
    "resolve_column",
    "searchable_columns",
]
