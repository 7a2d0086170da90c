"""Shared pytest fixtures.

The application builds its engine from ``DATABASE_URL`` at import time, so
the environment is prepared here before anything from ``grantkeeper`` is
imported. Store tests get their own SQLite file per test; HTTP tests run
the real app against a file that is recreated for every test.
"""

import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

TEST_DIR = Path(tempfile.mkdtemp(prefix="grantkeeper-tests-"))
APP_DB_FILE = TEST_DIR / "app.db"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{APP_DB_FILE}"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SWEEP_INTERVAL_SECONDS"] = "3600"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from grantkeeper.adapters.outbound.cache.client_cache import ClientCache
from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry
from grantkeeper.adapters.outbound.persistence.database import build_engine, build_sessionmaker, create_tables
from grantkeeper.adapters.outbound.persistence.repositories import (
    ClientRepository,
    GrantRepository,
    NotificationRepository,
    SessionRepository,
)
from grantkeeper.application.use_cases import (
    ClientRegistryService,
    CodeExchangeService,
    NotificationFanoutService,
)
from grantkeeper.domain.models.client_domain_model import Client
from grantkeeper.domain.models.grant_domain_model import GrantKind
from grantkeeper.domain.services.grant_service import GrantService

ADMIN_TOKEN = "test-admin-token"


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, **kwargs)
        return self.now


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def grant_store(session_factory, clock):
    return GrantRepository(session_factory, clock=clock)


@pytest.fixture
def session_store(session_factory, clock):
    return SessionRepository(session_factory, clock=clock)


@pytest.fixture
def client_repository(session_factory, clock):
    return ClientRepository(session_factory, clock=clock)


@pytest.fixture
def notification_repository(session_factory, clock):
    return NotificationRepository(session_factory, clock=clock)


@pytest.fixture
def client_cache(monotonic):
    return ClientCache(ttl=30.0, clock=monotonic)


@pytest.fixture
def client_registry(client_repository, grant_store, client_cache):
    return ClientRegistryService(client_repository, grant_store, client_cache)


@pytest.fixture
def connection_registry():
    return ConnectionRegistry(shard_count=4)


@pytest.fixture
def fanout(notification_repository, connection_registry):
    return NotificationFanoutService(notification_repository, connection_registry, delivery_timeout=0.2)


@pytest.fixture
def code_exchange(grant_store, client_registry, clock):
    return CodeExchangeService(grant_store, client_registry, clock=clock)


@pytest.fixture
def ensure_client(client_repository):
    """Insert a bare client row unless the client is already registered."""

    async def _ensure(client_id: str) -> None:
        if await client_repository.get_by_client_id(client_id) is None:
            await client_repository.create(Client(id=client_id, client_id=client_id, client_secret=None))

    return _ensure


@pytest.fixture
def issue_grant(grant_store, ensure_client, clock):
    """Store a grant issued at the fake clock's current time for an existing client."""

    async def _issue(kind=GrantKind.AUTHORIZATION_CODE, client_id="C1", ttl=60, **kwargs):
        await ensure_client(client_id)
        grant = GrantService.issue(kind, client_id=client_id, ttl=timedelta(seconds=ttl), now=clock(), **kwargs)
        return await grant_store.put(grant)

    return _issue


@pytest.fixture
def api_client():
    """TestClient running the app lifespan against a fresh database file."""
    from grantkeeper.main import app

    APP_DB_FILE.unlink(missing_ok=True)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def user_headers():
    """Build bearer headers for a user id."""
    from jose import jwt

    def _headers(user_id: int) -> dict:
        token = jwt.encode({"sub": str(user_id), "type": "access"}, "test-secret-key", algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers
