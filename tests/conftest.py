import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EXPIRY_WORKER_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["PAYMENT_PROVIDER"] = "simulated"

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cinema.core import clock as clock_module
from cinema.core.database import Base
from cinema.models import UserRole
from cinema.services import CatalogService, SeatInventoryStore, UserService
from cinema.services.payment import CardDetails, SimulatedPaymentGateway

FROZEN_NOW = datetime(2030, 1, 1, 12, 0, 0)


class FrozenClock:
    """Replacement for cinema.core.clock.utcnow that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    frozen = FrozenClock(FROZEN_NOW)
    monkeypatch.setattr(clock_module, "utcnow", frozen)
    return frozen


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database per test (one connection per session)"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cinema.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def other_db(session_factory):
    """Second, independent session standing in for another request worker"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def hall(db):
    return await CatalogService.create_hall(
        db, {"name": "Hall 1", "location": "Ground floor", "total_rows": 4, "seats_per_row": 5}
    )


@pytest_asyncio.fixture
async def movie(db):
    return await CatalogService.create_movie(
        db,
        {
            "title": "Deep Field",
            "description": "An astronomer finds a signal in the noise.",
            "genre": "Science Fiction",
            "duration_minutes": 141,
            "release_date": date(2029, 12, 1),
        },
    )


@pytest_asyncio.fixture
async def showtime(db, movie, hall):
    return await CatalogService.create_showtime(
        db,
        {
            "movie_id": movie.id,
            "cinema_hall_id": hall.id,
            "starts_at": FROZEN_NOW + timedelta(days=1),
            "view_type": "2D",
            "price": Decimal("10.00"),
        },
    )


@pytest_asyncio.fixture
async def seats(db, showtime):
    """Seats keyed by label, e.g. seats["A-1"]"""
    return {seat.label: seat for seat in await SeatInventoryStore.get_seats(db, showtime.id)}


@pytest_asyncio.fixture
async def user(db):
    return await UserService.register(db, "john@example.com", "password123", "John Doe")


@pytest_asyncio.fixture
async def admin(db):
    return await UserService.register(db, "admin@example.com", "admin12345", "Admin", role=UserRole.ADMIN)


@pytest.fixture
def gateway():
    return SimulatedPaymentGateway()


@pytest.fixture
def card():
    return CardDetails(
        number="4111 1111 1111 1111",
        expiry=date(2032, 12, 31),
        cvc="123",
        name_on_card="John Doe",
    )


@pytest.fixture
def declined_card():
    return CardDetails(
        number="4000-0000-0000-0002",
        expiry=date(2032, 12, 31),
        cvc="123",
        name_on_card="John Doe",
    )
