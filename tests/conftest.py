"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os

# Test configuration must be in place before config.py is imported
os.environ.setdefault("RUNTIME_ENVIRONMENT", "TEST")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdefghijklmnop")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EXPOSE_ERROR_DETAILS", "false")

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from enums.user_role import UserRole
from models import Base
from models.product import ProductDTO
from models.vendor import VendorDTO
from tests.factories import create_user, create_vendor, create_product
from utils.permission_utils import Principal


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def customer(test_session) -> Principal:
    return await create_user(test_session, "Asha Customer")


@pytest_asyncio.fixture
async def vendor_owner(test_session) -> Principal:
    return await create_user(test_session, "Ravi Vendor", role=UserRole.VENDOR)


@pytest_asyncio.fixture
async def admin(test_session) -> Principal:
    return await create_user(test_session, "Store Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def vendor(test_session, vendor_owner) -> VendorDTO:
    return await create_vendor(test_session, vendor_owner)


@pytest_asyncio.fixture
async def product(test_session, vendor) -> ProductDTO:
    return await create_product(test_session, vendor)


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory):
    """httpx client against the app with sessions bound to the test engine."""
    from web.app import create_app
    from web.dependencies import get_session

    app = create_app(rate_limit_enabled=False)

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
