"""
Pytest configuration and fixtures for testing.
"""
import fnmatch
import os
import uuid
from typing import AsyncGenerator, List, Tuple

# Test database URL - PostgreSQL in CI via the environment, SQLite otherwise
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./test_owlrsvp.db"
)
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("FREE_TIER_GUEST_LIMIT", "25")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from owlrsvp.main import app
from owlrsvp.billing.overflow_gateway import BillingError, get_billing_gateway
from owlrsvp.cache import redis_client
from owlrsvp.core.limiter import limiter
from owlrsvp.db.session import Base, get_session
from owlrsvp.db.models import AdminUser, Event, AuthMode, Attendee
from owlrsvp.events import publisher


test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class InMemoryCache:
    """Stand-in for the Redis cache client."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, expire=300):
        self.store[key] = value
        return True

    async def delete(self, key):
        self.store.pop(key, None)
        return True

    async def delete_pattern(self, pattern):
        keys = [k for k in self.store if fnmatch.fnmatch(k, pattern)]
        for k in keys:
            del self.store[k]
        return len(keys)

    async def close(self):
        pass


class RecordingBillingGateway:
    """Overflow billing gateway that records calls instead of talking to Stripe."""

    def __init__(self):
        self.calls: List[Tuple[str, int]] = []
        self.fail = False

    async def record_overflow(self, metered_item_ref, quantity):
        if self.fail:
            raise BillingError("card declined")
        self.calls.append((metered_item_ref, quantity))


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    Tables are dropped and recreated around every test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def billing_gateway() -> RecordingBillingGateway:
    return RecordingBillingGateway()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, billing_gateway) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for the API.
    Overrides the database session and billing gateway dependencies.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_billing_gateway] = lambda: billing_gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def memory_cache(monkeypatch) -> InMemoryCache:
    """Replace Redis with an in-process dictionary."""
    fake = InMemoryCache()
    monkeypatch.setattr(redis_client, "cache", fake)
    return fake


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture(autouse=True)
def published_events(monkeypatch) -> list:
    """Capture domain events instead of publishing to RabbitMQ."""
    sent = []

    async def mock_publish(routing_key, payload):
        sent.append((routing_key, payload))

    monkeypatch.setattr(publisher, "publish_event", mock_publish)
    return sent


async def _add(session: AsyncSession, obj):
    session.add(obj)
    await session.commit()
    await session.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def free_owner(db_session: AsyncSession) -> AdminUser:
    return await _add(db_session, AdminUser(email="free@example.com", full_name="Free Owner"))


@pytest_asyncio.fixture
async def pro_owner(db_session: AsyncSession) -> AdminUser:
    """Active pro subscriber with a metered overflow line item."""
    return await _add(db_session, AdminUser(
        email="pro@example.com",
        full_name="Pro Owner",
        subscription_tier="pro",
        subscription_status="active",
        stripe_customer_id="cus_test",
        stripe_subscription_id="sub_test",
        stripe_metered_item_id="si_overflow",
    ))


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession):
    """Factory for events with explicit settings."""
    async def _make(**overrides) -> Event:
        fields = {
            "title": "Garden Party",
            "admin_token": f"tok-{uuid.uuid4().hex}",
            "auth_mode": AuthMode.open,
            "allow_plus_guests": True,
        }
        fields.update(overrides)
        return await _add(db_session, Event(**fields))
    return _make


@pytest_asyncio.fixture
async def make_attendee(db_session: AsyncSession):
    async def _make(event: Event, **fields) -> Attendee:
        fields.setdefault("attending", False)
        fields.setdefault("guest_count", 0)
        return await _add(db_session, Attendee(event_id=event.id, **fields))
    return _make
