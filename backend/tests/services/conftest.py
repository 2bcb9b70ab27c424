"""Service test fixtures - async DB, fakes, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - Canvases created through the API use FakeGenerator/FakeEnricher
"""

import random
import uuid

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

import mindcanvas.infrastructure.database as db_module
from mindcanvas.api.routes import canvas_helpers
from mindcanvas.db.base import Base
from mindcanvas.infrastructure.database import DatabaseSessionManager, get_db
from mindcanvas.main import app
from mindcanvas.models.mindmap_project import MindmapProject  # noqa: F401
from mindcanvas.services.canvas_workspace import CanvasWorkspace

from tests.services.fakes import FakeEnricher, FakeGenerator, InMemoryStore


@pytest.fixture
async def test_engine():
    # StaticPool: every session shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
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
def generator():
    return FakeGenerator()


@pytest.fixture
def enricher():
    return FakeEnricher()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    """Controllable epoch-ms clock."""
    state = {"now": 1_700_000_000_000}

    def now():
        return state["now"]

    now.state = state
    return now


@pytest.fixture
def workspace(generator, enricher, clock):
    return CanvasWorkspace(
        uuid.uuid4(), generator, enricher, rng=random.Random(3), now_ms=clock,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, generator, enricher, monkeypatch):
    """FastAPI test client with DB dependency and AI collaborators replaced."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    def fake_workspace(canvas_id):
        return CanvasWorkspace(canvas_id, generator, enricher, rng=random.Random(3))

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(canvas_helpers, "create_workspace", fake_workspace)
    monkeypatch.setattr(
        "mindcanvas.api.routes.canvas_lifecycle.create_workspace", fake_workspace,
    )

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
    canvas_helpers._workspaces.clear()
    db_module.db_manager = original_manager
