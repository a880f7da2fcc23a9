import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pricebook.db.models import Item, Project
from pricebook.db.session import Base, enable_sqlite_foreign_keys
import pricebook.db.models  # noqa: F401


@pytest.fixture()
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture()
async def session(engine) -> AsyncSession:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as sess:
        yield sess


@pytest.fixture()
async def project(session) -> Project:
    project = Project(name="Espresso machines")
    session.add(project)
    await session.commit()
    return project


@pytest.fixture()
async def item(session, project) -> Item:
    item = Item(project_id=project.id, manufacturer="Gaggia", model="Classic Pro")
    session.add(item)
    await session.commit()
    return item


@pytest.fixture()
async def other_item(session, project) -> Item:
    item = Item(project_id=project.id, manufacturer="Rancilio", model="Silvia")
    session.add(item)
    await session.commit()
    return item
