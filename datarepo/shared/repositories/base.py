"""
Base Repository

This module provides the generic base repository. Entity-specific
repositories inherit from it and get filtering, searching, pagination,
grouping and CRUD for free.

What This Provides:
===================
- find(id)            → Single record by primary key (raises if missing)
- find_one()          → First record matching a filter spec
- find_and_lock(id)   → SELECT ... FOR UPDATE
- create()            → Insert a record
- update() / update_by() / update_or_create()
- delete() / delete_by() / delete_all()   (soft delete aware)
- translation()       → Write per-locale field values
- grouping()          → COUNT(*) per distinct combination of fields
- list()              → All matching records, searched and ordered
- list_paginated()    → One page of matching records (or the raw query)
- next_priority()     → max(priority) + 1

Generic Type Pattern:
=====================
    class ArticleRepository(BaseRepository[Article]):
        searchable_fields = ("title", "body")

        def __init__(self, session: AsyncSession) -> None:
            super().__init__(Article, session)

    repo = ArticleRepository(session)
    article = await repo.find(7)  # Returns Article, not Any!

Soft Deletes:
=============
Entity types mapping ``deleted_at`` hide trashed rows from every read
unless a TrashMode says otherwise, and delete by stamping deleted_at.

flush() vs commit():
====================
Repository methods only flush(). The owner of the session
(session_scope(), a request handler) decides when to commit.
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import Select, delete, func, select, text, update
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from datarepo.shared.core.exceptions import RecordNotFoundError, ValidationError
from datarepo.shared.core.logging import get_logger
from datarepo.shared.models.base import Base, TranslatableMixin
from datarepo.shared.repositories.filters import (
    apply_filters,
    apply_list_options,
    apply_ordering,
    column_names,
    resolve_column,
    searchable_columns,
)
from datarepo.shared.repositories.interface import BaseRepositoryInterface
from datarepo.shared.schemas.common import PaginatedResponse, PaginationMeta
from datarepo.shared.schemas.filters import (
    EqualityFilter,
    FilterInput,
    ListOptions,
    OrderSpec,
    PaginationOptions,
    TrashMode,
    split_conditions,
    split_reserved,
)


# TypeVar bound to Base ensures we only work with SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("datarepo.repositories")


class BaseRepository(BaseRepositoryInterface[ModelType], Generic[ModelType]):
    """
    Generic base repository built on an async SQLAlchemy session.

    Type Parameter:
        ModelType: The SQLAlchemy model class this repository manages

    Attributes:
        model: The SQLAlchemy model class
        session: The async database session
        searchable_fields: Columns scanned by keyword search
            (None means every mapped column)
    """

    searchable_fields: Optional[Sequence[str]] = None

    def __init__(self, model: Type[ModelType], session: AsyncSession) -> None:
        """
        Initialize the repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session from session_scope()
        """
        self.model = model
        self.session = session

    # ═══════════════════════════════════════════════════════════════════════════
    # QUERY BUILDING
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def soft_deletes(self) -> bool:
        """True if the entity type maps a deleted_at column."""
        return "deleted_at" in column_names(self.model)

    @property
    def _resource(self) -> str:
        return self.model.__name__

    def _primary_key(self):
        return sa_inspect(self.model).primary_key[0]

    def _scope_trash(self, stmt, trash: TrashMode = TrashMode.EXCLUDE):
        if not self.soft_deletes or trash is TrashMode.WITH:
            return stmt
        deleted_at = self.model.deleted_at
        if trash is TrashMode.ONLY:
            return stmt.where(deleted_at.is_not(None))
        return stmt.where(deleted_at.is_(None))

    def new_query(self, trash: TrashMode = TrashMode.EXCLUDE) -> Select:
        """
        Fresh SELECT over the entity, with trash visibility applied.

        Args:
            trash: Which soft-deleted rows to include

        Returns:
            Select statement ready for further constraints
        """
        return self._scope_trash(select(self.model), trash)

    def searchable_columns(self) -> list:
        """Columns scanned by the ``keyword`` option."""
        return searchable_columns(self.model, self.searchable_fields)

    def _keyword_columns(self, options: ListOptions) -> Optional[list]:
        # Only resolved when a keyword is given
        if options.keyword is None:
            return None
        return self.searchable_columns()

    async def _count(self, stmt: Select) -> int:
        counted = select(func.count()).select_from(stmt.order_by(None).subquery())
        result = await self.session.execute(counted)
        return result.scalar() or 0

    async def _matching_keys(self, conditions: Optional[FilterInput], trash: TrashMode) -> set:
        """
        Primary keys a bulk statement is about to touch.

        Flushes first so pending edits reach the database before the
        bulk statement runs.
        """
        await self.session.flush()
        stmt = self._scope_trash(select(*sa_inspect(self.model).primary_key), trash)
        stmt = apply_filters(stmt, self.model, conditions, apply_order=False)
        result = await self.session.execute(stmt)
        return {tuple(row) for row in result}

    def _loaded(self, keys: set) -> List[ModelType]:
        return [
            obj
            for obj in self.session.identity_map.values()
            if isinstance(obj, self.model) and sa_inspect(obj).identity in keys
        ]

    def _expire_loaded(self, keys: set) -> None:
        # Bulk statements bypass the identity map; reload on next query
        for obj in self._loaded(keys):
            self.session.expire(obj)

    def _expunge_loaded(self, keys: set) -> None:
        for obj in self._loaded(keys):
            self.session.expunge(obj)

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def find(self, record_id: Any, trash: bool = False) -> ModelType:
        """
        Get a single record by primary key.

        Args:
            record_id: Primary key value
            trash: Also look at soft-deleted rows

        Returns:
            The model instance

        Raises:
            RecordNotFoundError: No visible row has that key

        SQL Generated:
            SELECT * FROM articles WHERE articles.deleted_at IS NULL AND articles.id = 7
        """
        stmt = self.new_query(TrashMode.WITH if trash else TrashMode.EXCLUDE)
        result = await self.session.execute(stmt.where(self._primary_key() == record_id))
        instance = result.scalar_one_or_none()
        if instance is None:
            raise RecordNotFoundError(self._resource, record_id)
        return instance

    async def find_one(
        self,
        filters: Optional[FilterInput] = None,
        trash: bool = False,
    ) -> Optional[ModelType]:
        """
        Get the first record matching a filter spec.

        Args:
            filters: Filter spec, may carry order/sort
            trash: Also look at soft-deleted rows

        Returns:
            The first match, or None
        """
        stmt = self.new_query(TrashMode.WITH if trash else TrashMode.EXCLUDE)
        stmt = apply_filters(stmt, self.model, filters)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def find_and_lock(self, record_id: Any) -> ModelType:
        """
        Get a record and hold a row lock on it until the transaction ends.

        The lock belongs to the caller's transaction. SQLite has no row
        locks and ignores the clause.

        Raises:
            RecordNotFoundError: No visible row has that key

        SQL Generated:
            SELECT * FROM articles WHERE articles.id = 7 FOR UPDATE
        """
        stmt = self.new_query().where(self._primary_key() == record_id).with_for_update()
        result = await self.session.execute(stmt)
        instance = result.scalar_one_or_none()
        if instance is None:
            raise RecordNotFoundError(self._resource, record_id)
        return instance

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATE / UPDATE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, data: Mapping[str, Any]) -> ModelType:
        """
        Create a new record.

        Flushes to obtain generated keys and refreshes to load
        server defaults (created_at, ...).

        Args:
            data: Column values for the new record

        Returns:
            The created model instance

        Raises:
            InvalidFilterError: A key is not a mapped column
        """
        values = dict(data)
        for field in values:
            resolve_column(self.model, field)

        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)

        logger.debug("Record created", model=self._resource)
        return instance

    def _assign(self, instance: ModelType, data: Mapping[str, Any]) -> None:
        for field, value in data.items():
            resolve_column(self.model, field)
            setattr(instance, field, value)

    async def update(self, data: Mapping[str, Any], record_id: Any) -> ModelType:
        """
        Update a record by primary key.

        Every given key is written, None included.

        Raises:
            RecordNotFoundError: No visible row has that key
            InvalidFilterError: A key is not a mapped column
        """
        instance = await self.find(record_id)
        self._assign(instance, data)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update_by(self, conditions: FilterInput, data: Mapping[str, Any]) -> int:
        """
        Bulk update every visible row matching a filter spec.

        Returns:
            Number of rows updated

        SQL Generated:
            UPDATE articles SET status = 'archived'
            WHERE articles.deleted_at IS NULL AND articles.views < 10
        """
        values = dict(data)
        for field in values:
            resolve_column(self.model, field)

        keys = await self._matching_keys(conditions, TrashMode.EXCLUDE)
        stmt = self._scope_trash(update(self.model).values(**values))
        stmt = apply_filters(stmt, self.model, conditions, apply_order=False)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        self._expire_loaded(keys)

        logger.debug("Bulk update", model=self._resource, rows=result.rowcount)
        return result.rowcount

    async def update_or_create(
        self,
        conditions: Mapping[str, Any],
        data: Mapping[str, Any],
    ) -> ModelType:
        """
        Update the first record equal to ``conditions``, or create one
        from ``conditions`` merged with ``data``.
        """
        instance = await self.find_one(EqualityFilter(dict(conditions)))
        if instance is None:
            return await self.create({**conditions, **data})

        self._assign(instance, data)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def translation(
        self,
        instance: ModelType,
        params: Mapping[str, Mapping[str, Any]],
    ) -> ModelType:
        """
        Write per-locale values onto a translatable record.

        Args:
            instance: Record using TranslatableMixin
            params: {field: {locale: value}}

        Raises:
            ValidationError: The entity type is not translatable
        """
        if not isinstance(instance, TranslatableMixin):
            raise ValidationError(f"{self._resource} does not support translations")

        for field, locales in params.items():
            for locale, value in locales.items():
                setattr(instance.translate_or_new(locale), field, value)

        await self.session.flush()
        return instance

    # ═══════════════════════════════════════════════════════════════════════════
    # DELETE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def delete(self, record_id: Any) -> bool:
        """
        Delete a record by primary key.

        Soft-deletable entities get deleted_at stamped; others are
        removed.

        Raises:
            RecordNotFoundError: No visible row has that key
        """
        instance = await self.find(record_id)

        if self.soft_deletes:
            instance.deleted_at = datetime.now(timezone.utc)
        else:
            await self.session.delete(instance)

        await self.session.flush()
        return True

    async def delete_by(self, conditions: FilterInput) -> int:
        """
        Bulk delete every visible row matching a filter spec.

        Returns:
            Number of rows deleted (or stamped as deleted)
        """
        keys = await self._matching_keys(conditions, TrashMode.EXCLUDE)
        if self.soft_deletes:
            stmt = self._scope_trash(update(self.model).values(deleted_at=datetime.now(timezone.utc)))
        else:
            stmt = delete(self.model)

        stmt = apply_filters(stmt, self.model, conditions, apply_order=False)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        if self.soft_deletes:
            self._expire_loaded(keys)
        else:
            self._expunge_loaded(keys)

        logger.debug("Bulk delete", model=self._resource, rows=result.rowcount, soft=self.soft_deletes)
        return result.rowcount

    async def delete_all(self) -> int:
        """
        Delete every row of the entity type.

        Soft-deletable entities have deleted_at set to now on every row,
        trashed rows included. Others are truncated and their
        auto-increment counter reset:

            postgresql  TRUNCATE TABLE articles RESTART IDENTITY
            mysql       TRUNCATE TABLE articles
            sqlite      DELETE FROM articles + sqlite_sequence reset

        Returns:
            Number of rows affected
        """
        keys = await self._matching_keys(None, TrashMode.WITH)
        if self.soft_deletes:
            stmt = update(self.model).values(deleted_at=datetime.now(timezone.utc))
            result = await self.session.execute(stmt.execution_options(synchronize_session=False))
            self._expire_loaded(keys)
            return result.rowcount

        total = len(keys)
        table = self.model.__table__
        connection = await self.session.connection()
        dialect = connection.dialect
        name = dialect.identifier_preparer.format_table(table)

        if dialect.name == "postgresql":
            await self.session.execute(text(f"TRUNCATE TABLE {name} RESTART IDENTITY"))
        elif dialect.name in ("mysql", "mariadb"):
            await self.session.execute(text(f"TRUNCATE TABLE {name}"))
        else:
            await self.session.execute(delete(table))
            if dialect.name == "sqlite":
                await self._reset_sqlite_sequence(table.name)

        self._expunge_loaded(keys)
        logger.info("Table truncated", model=self._resource, rows=total)
        return total

    async def _reset_sqlite_sequence(self, table_name: str) -> None:
        # sqlite_sequence only exists once an AUTOINCREMENT table is created
        exists = await self.session.execute(
            text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'")
        )
        if exists.scalar() is not None:
            await self.session.execute(
                text("DELETE FROM sqlite_sequence WHERE name = :name"),
                {"name": table_name},
            )

    # ═══════════════════════════════════════════════════════════════════════════
    # AGGREGATES
    # ═══════════════════════════════════════════════════════════════════════════

    async def grouping(
        self,
        fields: Sequence[str],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[dict[str, Any]]:
        """
        Count records per distinct combination of ``fields``.

        Only order/sort are read from ``filters``; ordering applies when
        ``order`` is one of the grouped fields.

        Returns:
            [{"status": "draft", "total": 3}, ...]

        SQL Generated:
            SELECT status, count(*) AS total FROM articles
            GROUP BY status ORDER BY status ASC
        """
        if not fields:
            raise ValidationError("grouping requires at least one field")

        columns = [resolve_column(self.model, field) for field in fields]
        stmt = select(*columns, func.count().label("total")).group_by(*columns)
        stmt = self._scope_trash(stmt)

        _, order = split_reserved(filters or {})
        if order is not None and order.field in fields:
            stmt = apply_ordering(stmt, self.model, order)

        result = await self.session.execute(stmt)
        return [dict(row._mapping) for row in result]

    async def next_priority(self) -> int:
        """
        Next free value of the ``priority`` column.

        Returns max(priority) + 1, 1 for an empty table and 0 when the
        entity has no priority column. Two concurrent callers can read
        the same max; callers needing uniqueness must serialise around it.
        """
        if "priority" not in column_names(self.model):
            return 0

        stmt = self._scope_trash(select(func.coalesce(func.max(self.model.priority), 0)))
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) + 1

    # ═══════════════════════════════════════════════════════════════════════════
    # LISTING
    # ═══════════════════════════════════════════════════════════════════════════

    async def list(self, filters: Optional[Mapping[str, Any]] = None) -> List[ModelType]:
        """
        List every visible record matching the list options.

        Options (all optional):
            order / sort  Ordering, default id desc
            from / to     created_at day range, inclusive
            active        is_active equality
            keyword       Substring match against every searchable column

        Returns:
            List of model instances

        Example:
            articles = await repo.list({"keyword": "postgres", "sort": "asc"})

        SQL Generated:
            SELECT * FROM articles
            WHERE articles.deleted_at IS NULL
              AND (CAST(articles.id AS VARCHAR) LIKE '%postgres%' OR ...)
            ORDER BY articles.id ASC
        """
        options = ListOptions.from_mapping(filters)

        stmt = apply_list_options(self.new_query(), self.model, options, self._keyword_columns(options))
        stmt = apply_ordering(stmt, self.model, options.order_spec)

        result = await self.session.execute(stmt)
        records = result.scalars().all()

        logger.debug("Listed records", model=self._resource, count=len(records))
        return list(records)

    async def list_paginated(
        self,
        filters: Mapping[str, Any],
        conditions: Optional[Mapping[str, Any]] = None,
    ) -> Union[PaginatedResponse[ModelType], Select]:
        """
        One page of visible records matching conditions and list options.

        Args:
            filters: List options plus required order/sort, perPage
                (default 20), page (default 1) and export
            conditions: Extra filter spec; ``trash`` restricts the
                result to soft-deleted rows

        Returns:
            PaginatedResponse, or the unexecuted Select when export is set

        Raises:
            ValidationError: order or sort is missing

        Example:
            page = await repo.list_paginated(
                {"order": "id", "sort": "desc", "perPage": 2},
                {"status": {"draft": "="}, "trash": False},
            )
        """
        raw = dict(filters or {})
        missing = [key for key in ("order", "sort") if raw.get(key) in (None, "")]
        if missing:
            logger.warning("Paginated listing without ordering", model=self._resource, missing=missing)
            raise ValidationError(
                f"list_paginated requires {' and '.join(missing)}",
                details={"missing": missing},
            )

        options = PaginationOptions.from_mapping(raw)
        trash, remaining = split_conditions(conditions)

        stmt = self.new_query(TrashMode.ONLY if trash else TrashMode.EXCLUDE)
        if remaining:
            stmt = apply_filters(stmt, self.model, remaining, apply_order=False)
        stmt = apply_list_options(stmt, self.model, options, self._keyword_columns(options))
        stmt = apply_ordering(stmt, self.model, OrderSpec(options.order, options.sort))

        if options.export:
            return stmt

        total = await self._count(stmt)
        result = await self.session.execute(stmt.offset(options.offset).limit(options.per_page))
        records = result.scalars().all()

        logger.debug(
            "Paginated records",
            model=self._resource,
            page=options.page,
            per_page=options.per_page,
            total=total,
        )
        return PaginatedResponse(
            data=records,
            pagination=PaginationMeta.create(page=options.page, per_page=options.per_page, total=total),
        )
