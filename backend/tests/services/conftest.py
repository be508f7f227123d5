"""Service test fixtures - async DB, fake collaborators, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - app.state handles (hub, providers, social session) are test fakes;
      ASGITransport does not run the lifespan

Design Decisions:
    - SQLite in-memory: fast, no external dependency; geometry is stored as
      EWKT text so nothing PostgreSQL-specific is exercised
"""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import app.infrastructure.database as db_module
from app.api.deps import Providers
from app.core.domain_types import Coordinate
from app.db.base import Base
import app.models  # noqa: F401
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.main import app
from app.services.broadcast_hub import BroadcastHub
from app.services.record_store import RecordStore
from app.services.social_aggregator import SocialSession
from app.services.ttl_cache import TTLCache

from tests.services.fakes import (
    FakeGeocoder, FakeImageFetcher, FakePlaces, FakeSocialProvider,
    FakeTextProvider, ManualClock, RecordingPublisher,
)

MIAMI = Coordinate(lat=25.77, lon=-80.19)
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
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
def clock():
    return ManualClock(T0)


@pytest.fixture
def cache(test_db, clock):
    return TTLCache(test_db, clock=clock)


@pytest.fixture
def geocoder():
    return FakeGeocoder({"Miami, FL": MIAMI})


@pytest.fixture
def text_provider():
    return FakeTextProvider(text="Miami, FL", fragments=["Looks ", "real: ", "flood."])


@pytest.fixture
def social_provider():
    return FakeSocialProvider()


@pytest.fixture
def places():
    return FakePlaces([{"id": i, "tags": {"amenity": "hospital"}} for i in range(7)])


@pytest.fixture
def images():
    return FakeImageFetcher()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def store(test_db, geocoder, publisher):
    return RecordStore(test_db, geocoder, publisher)


@pytest.fixture
async def client(
    test_engine, test_session_factory,
    geocoder, text_provider, social_provider, places, images,
):
    """FastAPI test client with DB and collaborators replaced."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.hub = BroadcastHub()
    app.state.providers = Providers(
        geocoder=geocoder, text=text_provider, places=places, images=images,
    )
    app.state.social_session = SocialSession(social_provider)

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
