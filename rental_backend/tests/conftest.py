"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from rental_backend.app.main import app
from rental_backend.app.db.session import get_db, Base
from rental_backend.app.core.config import settings
from rental_backend.app.core.exceptions import SmsDeliveryError
from rental_backend.app.core.redis_client import get_redis
from rental_backend.app.models.transaction import Transaction
from rental_backend.app.services.sms_service import get_sms_service

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


class FakeSmsService:
    """Records sends instead of calling Twilio."""

    def __init__(self):
        self.sent = []
        self.error = None

    async def send_sms(self, to, body, tags=None):
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "body": body, "tags": tags or {}})
        return {"sid": f"SM{len(self.sent):032d}", "status": "queued", "dry_run": False}

    def fail_with(self, message="Twilio unavailable"):
        self.error = SmsDeliveryError(message, details={"provider_status": 503})

    def reset(self):
        self.sent = []
        self.error = None


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session")
def sms_outbox():
    return FakeSmsService()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session, sms_outbox):
    """Apply dependency overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_sms_service] = lambda: sms_outbox
    yield

    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session, sms_outbox):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()
    sms_outbox.reset()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def webhook_settings(monkeypatch):
    """Known webhook settings regardless of the developer's .env."""
    monkeypatch.setattr(settings, "shippo_webhook_secret", None)
    monkeypatch.setattr(settings, "shippo_mode", None)
    monkeypatch.setattr(settings, "test_webhooks_enabled", False)
    monkeypatch.setattr(settings, "twilio_auth_token", None)
    monkeypatch.setattr(settings, "ops_api_token", None)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_transaction(db_session):
    """Factory for persisted transactions with an outbound label."""

    async def _make(**overrides) -> Transaction:
        values = {
            "id": "tx-1001",
            "customer_phone": "(555) 123-4567",
            "carrier": "USPS",
            "outbound_tracking_number": "9405511234567890123456",
            "outbound_tracking_url": "https://goshippo.com/track/9405511234567890123456",
            "return_tracking_number": "9405519999999999999999",
            "protected_data": {},
        }
        values.update(overrides)
        transaction = Transaction(**values)
        db_session.add(transaction)
        await db_session.commit()
        return transaction

    return _make


@pytest.fixture
def fetch_transaction():
    """Read a transaction back in a fresh session."""

    async def _fetch(transaction_id: str) -> Transaction:
        async with TestingSessionLocal() as session:
            return await session.get(Transaction, transaction_id)

    return _fetch
