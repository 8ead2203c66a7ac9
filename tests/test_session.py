import pytest
import pytest_asyncio

from datarepo.shared.db.session import (
    build_sessionmaker,
    close_db,
    get_db,
    get_engine,
    get_sessionmaker,
    init_db,
    session_scope,
)
from datarepo.shared.models.base import Base
from datarepo.shared.repositories.base import BaseRepository

from tests.models import Tag


@pytest_asyncio.fixture
async def default_engine():
    """The settings-built engine (in-memory SQLite under test) with tables created."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await close_db()
    get_sessionmaker.cache_clear()
    get_engine.cache_clear()


async def tag_names(factory) -> list[str]:
    async with factory() as session:
        return [tag.name for tag in await BaseRepository(Tag, session).list()]


@pytest.mark.integration
@pytest.mark.asyncio
class TestSessionScope:
    async def test_commits_on_success(self, engine):
        factory = build_sessionmaker(engine)

        async with session_scope(factory) as session:
            await BaseRepository(Tag, session).create({"name": "kept"})

        assert await tag_names(factory) == ["kept"]

    async def test_rolls_back_and_reraises(self, engine):
        factory = build_sessionmaker(engine)

        with pytest.raises(RuntimeError, match="boom"):
            async with session_scope(factory) as session:
                await BaseRepository(Tag, session).create({"name": "lost"})
                raise RuntimeError("boom")

        assert await tag_names(factory) == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestLifecycle:
    async def test_init_and_close(self, default_engine):
        await init_db()
        await close_db()

        # A disposed engine reconnects on next use
        await init_db()

    async def test_get_db_commits(self, default_engine):
        db = get_db()
        session = await db.__anext__()
        await BaseRepository(Tag, session).create({"name": "kept"})

        with pytest.raises(StopAsyncIteration):
            await db.__anext__()

        assert await tag_names(get_sessionmaker()) == ["kept"]

    async def test_get_db_rolls_back(self, default_engine):
        db = get_db()
        session = await db.__anext__()
        await BaseRepository(Tag, session).create({"name": "lost"})

        with pytest.raises(RuntimeError, match="boom"):
            await db.athrow(RuntimeError("boom"))

        assert await tag_names(get_sessionmaker()) == []
