"""
Shared fixtures.

Each test gets its own SQLite database file (aiosqlite) with the schema
created from the ORM metadata, and an app whose get_db_session dependency
is pointed at it. The app's Broadcaster is the `broadcaster` fixture, so
tests can subscribe next to the HTTP client.
"""

import os

# Settings are read at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import featherlog.models.log_event  # noqa: F401
import featherlog.models.project  # noqa: F401
import featherlog.models.user  # noqa: F401
from featherlog.auth.tokens import issue_token
from featherlog.core.database import Base, build_engine, get_db_session
from featherlog.main import create_app
from featherlog.services.broadcaster import Broadcaster
from featherlog.services.projects import create_project


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'featherlog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def broadcaster():
    return Broadcaster(queue_size=10)


def make_app(session_factory, broadcaster):
    app = create_app(broadcaster=broadcaster)

    async def _test_session():
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_db_session] = _test_session
    return app


@pytest.fixture
async def client(session_factory, broadcaster):
    transport = httpx.ASGITransport(app=make_app(session_factory, broadcaster))
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
async def unavailable_client(tmp_path, broadcaster):
    """Client whose database file sits in a directory that does not exist."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'featherlog.db'}")
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    transport = httpx.ASGITransport(app=make_app(factory, broadcaster))
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    await engine.dispose()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {issue_token(1, 'admin')}"}


@pytest.fixture
async def demo_project(session):
    return await create_project(session, "demo", "Demo", ["https://demo.app"])
