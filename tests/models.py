"""Entity types used by the test suite, one per mixin combination."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from datarepo.shared.models.base import (
    ActiveMixin,
    Base,
    PriorityMixin,
    SoftDeleteMixin,
    TimestampMixin,
    TranslatableMixin,
)
from datarepo.shared.repositories.base import BaseRepository


class Article(Base, TimestampMixin, SoftDeleteMixin, ActiveMixin, PriorityMixin):
    __tablename__ = "test_articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default="draft")
    views: Mapped[int] = mapped_column(Integer, default=0)


class Tag(Base):
    __tablename__ = "test_tags"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


class Page(Base, TranslatableMixin):
    __tablename__ = "test_pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50))


class ArticleRepository(BaseRepository[Article]):
    searchable_fields = ("title", "status")

    def __init__(self, session) -> None:
        super().__init__(Article, session)
