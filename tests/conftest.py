# tests/conftest.py
import os

# Settings are read at import time; configure them before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RECONCILE_ENABLED"] = "false"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from typing import List, Dict, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stockflow.core.enums import Role
from stockflow.core.security import create_access_token
from stockflow.core.utils import new_uuid
from stockflow.database import Base
from stockflow.dependencies import get_db, get_notification_queue
from stockflow.main import app
from stockflow.models.product import Product, ProductVariation
from stockflow.schemas.auth import TokenClaims

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeNotificationQueue:
    """Records jobs instead of sending them to the broker."""

    def __init__(self):
        self.jobs: List[Dict[str, Any]] = []

    async def add(self, endpoint: str, sku: str, new_stock: int) -> None:
        self.jobs.append({"endpoint": endpoint, "sku": sku, "newStock": new_stock})

    def close(self) -> None:
        pass


@pytest.fixture(scope="function")
async def test_engine():
    """Create a fresh in-memory database for each test function."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide a database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_queue():
    return FakeNotificationQueue()


@pytest.fixture
async def client(session_factory, fake_queue):
    """Async client against the app with the test database and a recording queue."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_queue] = lambda: fake_queue

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(role: Role) -> Dict[str, str]:
    token = create_access_token(TokenClaims(id=new_uuid(), role=role, email=f"{role.value.lower()}@example.com"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers(Role.ADMIN)


@pytest.fixture
def seller_headers():
    return auth_headers(Role.SELLER)


@pytest.fixture
def create_variation(db_session):
    """Factory that stores a product with one variation and returns the variation."""
    async def _create(sku: str = "SKU-1", price: float = 10.0, stock: int = 5, name: str = "Test Shirt"):
        variation = ProductVariation(sku=sku, price=price, stock=stock)
        db_session.add(Product(name=name, category="apparel", variations=[variation]))
        await db_session.commit()
        return variation

    return _create
