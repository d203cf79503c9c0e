"""
Shared fixtures for the protected URL gateway test suite.

Every test gets its own SQLite database under ``tmp_path``; API tests drive
the ASGI app in-process with dependency overrides pointing at that database.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

# Set test environment variables before importing app modules: settings are
# read once at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENDPOINT_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("APP_URL", "https://gateway.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.api.deps import get_access_logger, get_endpoint_store, get_gateway  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db.database import create_db_and_tables  # noqa: E402
from app.main import app  # noqa: E402
from app.services.access_logger import AccessLogger  # noqa: E402
from app.services.endpoint_store import SqlEndpointStore  # noqa: E402
from app.services.gateway import AuthenticationGateway  # noqa: E402

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gateway.db'}")
    await create_db_and_tables(engine)
    yield sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlEndpointStore(session_factory, cache_ttl=0)


@pytest.fixture
def access_logger(session_factory):
    return AccessLogger(session_factory)


@pytest.fixture
def gateway(store, access_logger):
    return AuthenticationGateway(store, access_logger)


@pytest_asyncio.fixture
async def client(store, access_logger, gateway):
    app.dependency_overrides[get_endpoint_store] = lambda: store
    app.dependency_overrides[get_access_logger] = lambda: access_logger
    app.dependency_overrides[get_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': OWNER_ID})}"}


@pytest.fixture
def other_owner_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': OTHER_OWNER_ID})}"}
