"""
Base Model Classes

The declarative base and the column mixins that repositories recognise.
A repository never inspects entity semantics. It only looks at which of
these columns an entity type maps.

Model Hierarchy:
================
    Base                      ← SQLAlchemy declarative base
       │
       ├── TimestampMixin     ← created_at / updated_at (from/to filters)
       ├── SoftDeleteMixin    ← deleted_at (trash visibility, soft delete)
       ├── ActiveMixin        ← is_active (active filter)
       ├── PriorityMixin      ← priority (next_priority)
       └── TranslatableMixin  ← translations JSON (translation)

Usage:
======
    from datarepo.shared.models.base import Base, TimestampMixin, SoftDeleteMixin

    class Article(Base, TimestampMixin, SoftDeleteMixin):
        __tablename__ = "articles"
        id: Mapped[int] = mapped_column(primary_key=True)
        title: Mapped[str] = mapped_column(String(255))
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models managed by repositories.

    Maps plain ``dict[str, Any]`` annotations to the portable JSON type
    so the same models run on PostgreSQL, MySQL and SQLite.
    """

    type_annotation_map = {
        dict[str, Any]: JSON,
    }


class TimestampMixin:
    """
    Mixin that adds automatic timestamp tracking to models.

    - created_at: Set by the database on INSERT. ListOptions.from_/to
      narrow on this column.
    - updated_at: Set on INSERT, refreshed by SQLAlchemy on UPDATE
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class SoftDeleteMixin:
    """
    Mixin that adds soft delete capability to models.

    Repositories treat any entity mapping ``deleted_at`` as soft-deletable:
    - Default queries hide rows where deleted_at is set
    - delete()/delete_by()/delete_all() stamp deleted_at instead of removing rows
    - TrashMode.WITH / TrashMode.ONLY widen or invert visibility

    Example values:
        deleted_at: None                  (record is visible)
        deleted_at: 2024-01-20T09:00:00Z  (record is in the trash)
    """

    # NULL means the record is active; a timestamp means it's deleted
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    @property
    def is_deleted(self) -> bool:
        """True if the record has been soft deleted."""
        return self.deleted_at is not None


class ActiveMixin:
    """Boolean status column matched by the ``active`` list option."""

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )


class PriorityMixin:
    """
    Integer ordering column.

    BaseRepository.next_priority() returns max(priority) + 1 for models
    mapping this column, and 0 for everything else.
    """

    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )


class TranslatableMixin:
    """
    Per-locale field values stored in a single JSON column.

    Layout:
        {"en": {"title": "Hello"}, "de": {"title": "Hallo"}}

    JSON columns do not track in-place mutation, so every write
    reassigns the whole mapping.
    """

    translations: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        default=dict,
    )

    def translate_or_new(self, locale: str) -> "Translation":
        """Writable view of one locale, created on first write."""
        return Translation(self, locale)

    def translate(self, field: str, locale: str, default: Any = None) -> Any:
        """Read a translated value, or ``default`` if the locale lacks it."""
        return (self.translations or {}).get(locale, {}).get(field, default)


class Translation:
    """Attribute-style accessor for a single locale of a TranslatableMixin row."""

    def __init__(self, owner: TranslatableMixin, locale: str) -> None:
        object.__setattr__(self, "_owner", owner)
        object.__setattr__(self, "_locale", locale)

    def __getattr__(self, field: str) -> Any:
        return self._owner.translate(field, self._locale)

    def __setattr__(self, field: str, value: Any) -> None:
        translations = {
            locale: dict(values) for locale, values in (self._owner.translations or {}).items()
        }
        translations.setdefault(self._locale, {})[field] = value
        self._owner.translations = translations
