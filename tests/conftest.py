"""
Test Configuration and Fixtures
Version: 1.0

In-memory SQLite database shared by the service tests and the API client.
"""

import os

# Must be set before config/database are imported anywhere
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from models import User, Vehicle
from security import hash_token


TOKENS = {
    "admin": "admin-token-0001",
    "staff": "staff-token-0002",
    "customer": "customer-token-0003",
    "other": "customer-token-0004",
}


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    """Fresh schema per test. StaticPool keeps one in-memory connection alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

def make_user(role: str, name: str, email: str, token: str) -> User:
    return User(name=name, email=email, role=role, api_token_hash=hash_token(token), is_active=True)


def make_vehicle(plate: str, **overrides) -> Vehicle:
    fields = dict(
        make="Toyota",
        model="Corolla",
        year=2022,
        type="sedan",
        rental_price=Decimal("45.00"),
        status="available",
        license_plate=plate,
        color="White",
        fuel_type="petrol",
        transmission="automatic",
        seats=5,
    )
    fields.update(overrides)
    return Vehicle(**fields)


@pytest_asyncio.fixture
async def users(db) -> Dict[str, User]:
    """admin, staff and two customers."""
    seeded = {
        "admin": make_user("admin", "Ada Admin", "admin@example.com", TOKENS["admin"]),
        "staff": make_user("staff", "Sam Staff", "staff@example.com", TOKENS["staff"]),
        "customer": make_user("customer", "Cara Customer", "cara@example.com", TOKENS["customer"]),
        "other": make_user("customer", "Omar Other", "omar@example.com", TOKENS["other"]),
    }
    db.add_all(seeded.values())
    await db.commit()
    return seeded


@pytest_asyncio.fixture
async def vehicle(db) -> Vehicle:
    """Sedan at 45.00 per day."""
    v = make_vehicle("ZG-1000-AA")
    db.add(v)
    await db.commit()
    return v


@pytest.fixture
def future():
    """Date helper relative to the real today, for API tests."""
    def _future(days: int) -> date:
        return date.today() + timedelta(days=days)
    return _future


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory, users) -> AsyncGenerator[httpx.AsyncClient, None]:
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth(role: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {TOKENS[role]}"}
