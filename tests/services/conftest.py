"""Service test fixtures — async DB, fake edges, and the FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - The process runtime is replaced with a seeded masker and recording fakes
      for the proof store and message channel

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - StaticPool keeps one connection so every session sees the same database
    - ASGITransport skips lifespan; fixtures build what lifespan would
"""

import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

import pulse.api.dependencies as deps
import pulse.infrastructure.database as db_module
from pulse.config import Settings
from pulse.core.errors import DispatchError, StorageError
from pulse.core.geo_index import GridGeoIndex
from pulse.core.location_masker import LocationPrivacyMasker
from pulse.db.base import Base
from pulse.infrastructure.database import DatabaseSessionManager, get_db
from pulse.infrastructure.proof_store import proof_object_key
from pulse.main import app


class FakeProofStore:
    """Records uploads; set `fail` to simulate an unreachable store."""

    def __init__(self):
        self.uploads: list[tuple[str, bytes, str]] = []
        self.fail = False

    async def upload(self, filename: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise StorageError("bucket unreachable", "upload")
        self.uploads.append((filename, content, content_type))
        key = proof_object_key(filename, 1700000000000 + len(self.uploads))
        return f"https://storage.test/request-proofs/{key}"


class FakeChannel:
    """Records emitted payloads; recipients in `fail_for` raise DispatchError."""

    def __init__(self):
        self.emitted = []
        self.fail_for: set[str | None] = set()

    async def emit(self, payload) -> None:
        if payload.recipient in self.fail_for:
            raise DispatchError("gateway down", recipient=payload.recipient)
        self.emitted.append(payload)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def proof_store():
    return FakeProofStore()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def index():
    return GridGeoIndex()


@pytest.fixture
def masker():
    return LocationPrivacyMasker(0.005, random.Random(7))


@pytest.fixture
def runtime(index, masker, proof_store, channel):
    """Process runtime wired with fakes, installed as the module singleton."""
    original = deps.runtime
    deps.runtime = deps.Runtime(
        settings=Settings(proof_max_bytes=1024),
        index=index,
        masker=masker,
        proof_store=proof_store,
        channel=channel,
    )
    yield deps.runtime
    deps.runtime = original


@pytest.fixture
async def client(test_engine, test_session_factory, runtime):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Readiness check uses db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
