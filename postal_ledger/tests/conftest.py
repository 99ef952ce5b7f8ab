"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from postal_ledger.app.main import app
from postal_ledger.app.core.config import settings
from postal_ledger.app.db.session import get_db, Base
from postal_ledger.app.core.redis_client import get_redis

# Import all models to ensure they're registered with Base
from postal_ledger.app.models.identity import Identity
from postal_ledger.app.models.audit_log import AuditLog
from postal_ledger.app.models.world_state import WorldStateEntry
from postal_ledger.app.models.ledger_event import LedgerEvent

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
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(mock_redis):
    """Point the app at the test database and the mock redis."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


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
async def admin_headers(client):
    """Enroll the bootstrap admin and return its auth headers."""
    response = await client.post("/v1/identities/admin/enroll", json={
        "username": settings.admin_username,
        "secret": settings.admin_secret
    })
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def enroll_user(client, admin_headers, username: str, role: str = "employee") -> dict:
    """Register + enroll an identity, returning the enrollment response body."""
    registration = await client.post(
        "/v1/identities",
        json={"username": username, "role": role},
        headers=admin_headers
    )
    assert registration.status_code == 201
    enrollment = await client.post("/v1/identities/enroll", json={
        "username": username,
        "secret": registration.json()["enrollment_secret"]
    })
    assert enrollment.status_code == 200
    return enrollment.json()


@pytest.fixture
async def worker(client, admin_headers):
    """An enrolled postal employee: (auth headers, identity string)."""
    body = await enroll_user(client, admin_headers, "postalWorker", "employee")
    return {"Authorization": f"Bearer {body['access_token']}"}, body["identity"]
