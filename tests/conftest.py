"""
Shared fixtures: an in-memory SQLite database per test, the ASGI app wired to
it, and two independent owners with bearer tokens.

Run with:
    pip install -e ".[test]" && pytest -v
"""
import os

from cryptography.fernet import Fernet

# Settings are read at import time, so the environment has to be in place first.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("API_SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stowpilot.core.database import Base, get_db
from stowpilot.core.security import hash_password
from stowpilot.main import app
from stowpilot.models import billing, customer, facility, rental  # noqa: F401  (register tables)
from stowpilot.models.profile import Profile
from tests.helpers import PASSWORD, auth_headers


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _get_test_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    yield factory
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def _make_owner(factory, email: str) -> Profile:
    async with factory() as session:
        profile = Profile(
            email=email,
            hashed_password=hash_password(PASSWORD),
            full_name=email.split("@")[0].title(),
            business_name="Acme Storage",
            role="owner",
            subscription_tier="free",
            subscription_status="active",
            is_active=True,
        )
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile


@pytest.fixture
async def owner(session_factory) -> Profile:
    return await _make_owner(session_factory, "alice@example.com")


@pytest.fixture
async def other_owner(session_factory) -> Profile:
    return await _make_owner(session_factory, "bob@example.com")


@pytest.fixture
def headers(owner) -> dict:
    return auth_headers(owner.id)


@pytest.fixture
def other_headers(other_owner) -> dict:
    return auth_headers(other_owner.id)


