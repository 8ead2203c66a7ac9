"""
SQLAlchemy Model Base Classes

Entity types are owned by the application. This package only provides
the declarative base and the mixins whose columns repositories act on.

Usage:
======
    from datarepo.shared.models import Base, TimestampMixin, SoftDeleteMixin

    class Article(Base, TimestampMixin, SoftDeleteMixin):
        __tablename__ = "articles"
        ...
"""

from datarepo.shared.models.base import (
    Base,
    TimestampMixin,
    SoftDeleteMixin,
    ActiveMixin,
    PriorityMixin,
    TranslatableMixin,
    Translation,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "ActiveMixin",
    "PriorityMixin",
    "TranslatableMixin",
    "Translation",
]
