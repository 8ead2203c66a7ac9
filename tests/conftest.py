"""
Shared fixtures: an in-memory SQLite database, repositories over the
entity types in tests/models.py, and a seeded set of articles.
"""

import os
from datetime import datetime, timezone

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio

from datarepo.shared.db.session import build_engine, build_sessionmaker
from datarepo.shared.models.base import Base
from datarepo.shared.repositories.base import BaseRepository

from tests.models import ArticleRepository, Page, Tag


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def article_repo(session):
    return ArticleRepository(session)


@pytest.fixture
def tag_repo(session):
    return BaseRepository(Tag, session)


@pytest.fixture
def page_repo(session):
    return BaseRepository(Page, session)


@pytest_asyncio.fixture
async def articles(article_repo):
    """Five articles created on different days, ids 1..5."""
    rows = [
        {"title": "Intro to Postgres", "status": "published", "views": 120, "priority": 3,
         "is_active": True, "created_at": utc(2024, 1, 10, 8, 30)},
        {"title": "Async SQLAlchemy", "status": "draft", "views": 15, "priority": 7,
         "is_active": True, "created_at": utc(2024, 1, 15, 0, 0)},
        {"title": "Indexing basics", "status": "published", "views": 480, "priority": 1,
         "is_active": False, "created_at": utc(2024, 1, 15, 23, 59, 59)},
        {"title": "Zero downtime migrations", "status": "archived", "views": 60, "priority": 5,
         "is_active": True, "created_at": utc(2024, 1, 20, 12, 0)},
        {"title": "Query planning", "status": "draft", "views": 5, "priority": 2,
         "is_active": False, "created_at": utc(2024, 2, 1, 9, 0)},
    ]
    return [await article_repo.create(row) for row in rows]
