"""Pytest fixtures for the Entries API tests."""

import os
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Service root (services/api) on PYTHONPATH so `import app` resolves
API_ROOT = Path(__file__).resolve().parents[1]
if str(API_ROOT) not in sys.path:
    sys.path.insert(0, str(API_ROOT))

# Keep the module-level engine off TiDB while the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from app.database import Base, get_db  # noqa: E402
from app.dependencies import get_geocoder  # noqa: E402
from app.errors import UpstreamError  # noqa: E402
from app.schemas import Coordinate  # noqa: E402
import app.models  # noqa: E402,F401  (registers the entries table)


class FakeGeocoder:
    """In-memory geocoder: known addresses resolve, others miss."""

    def __init__(self, places: dict | None = None, fail: bool = False):
        self.places = places or {}
        self.fail = fail
        self.calls: list[str] = []

    async def resolve(self, address: str):
        self.calls.append(address)
        if self.fail:
            raise UpstreamError("geocoder down")
        return self.places.get(address)


@pytest.fixture
def places():
    return {
        "Near": Coordinate(lat=0.19, lon=0.0),
        "Edge": Coordinate(lat=0.2, lon=0.0),
        "Far": Coordinate(lat=0.3, lon=0.1),
        "Puerta del Sol, Madrid": Coordinate(lat=40.416775, lon=-3.703790),
        "North Pole": Coordinate(lat=89.95, lon=0.0),
    }


@pytest.fixture
def fake_geocoder(places):
    return FakeGeocoder(places)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, fake_geocoder):
    from app.main import app

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_geocoder] = lambda: fake_geocoder
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
