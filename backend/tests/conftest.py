"""
Test configuration and fixtures
"""
import os
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENV"] = "dev"
os.environ["DEBUG"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-session-cookies-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"  # minimum work factor keeps the suite fast
os.environ["SEED_DEMO_USERS"] = "false"

from app.db.database import Database, get_db
from app.db.models import Role
from app.main import app
from app.services.credentials import CredentialStore, to_identity
from app.services.records import Identity


# Test database setup
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """Create an in-memory database with the full schema"""
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_schema()

    yield db

    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with database.session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client_factory(db_session: AsyncSession) -> AsyncGenerator[Callable[[], AsyncClient], None]:
    """
    Build independent clients (separate cookie jars) against the same database.
    """
    clients = []

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    def _make() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(client_factory) -> AsyncClient:
    """Unauthenticated test client"""
    return client_factory()


# === Sample Data Fixtures ===

async def _create_user(db_session: AsyncSession, username: str, password: str, role: Role) -> Identity:
    store = CredentialStore(db_session)
    await store.create_user(username, password, role)
    user = await store.find_by_username(username)
    return to_identity(user)


@pytest_asyncio.fixture
async def alice(db_session: AsyncSession) -> Identity:
    """Requester"""
    return await _create_user(db_session, "alice", "alice-secret", Role.USER)


@pytest_asyncio.fixture
async def carol(db_session: AsyncSession) -> Identity:
    """Second requester"""
    return await _create_user(db_session, "carol", "carol-secret", Role.USER)


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> Identity:
    """Auditor"""
    return await _create_user(db_session, "bob", "bob-secret", Role.AUDITOR)


@pytest_asyncio.fixture
async def dave(db_session: AsyncSession) -> Identity:
    """Second auditor"""
    return await _create_user(db_session, "dave", "dave-secret", Role.AUDITOR)


PASSWORDS = {
    "alice": "alice-secret",
    "carol": "carol-secret",
    "bob": "bob-secret",
    "dave": "dave-secret",
}


async def login(client: AsyncClient, username: str, password: str = None) -> dict:
    """Log `client` in; the session cookie stays in its cookie jar"""
    response = await client.post(
        "/api/login",
        json={"username": username, "password": password or PASSWORDS[username]},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def alice_client(client_factory, alice: Identity) -> AsyncClient:
    ac = client_factory()
    await login(ac, "alice")
    return ac


@pytest_asyncio.fixture
async def carol_client(client_factory, carol: Identity) -> AsyncClient:
    ac = client_factory()
    await login(ac, "carol")
    return ac


@pytest_asyncio.fixture
async def bob_client(client_factory, bob: Identity) -> AsyncClient:
    ac = client_factory()
    await login(ac, "bob")
    return ac


@pytest_asyncio.fixture
async def dave_client(client_factory, dave: Identity) -> AsyncClient:
    ac = client_factory()
    await login(ac, "dave")
    return ac


SAMPLE_PURCHASE = {
    "vendor": "Acme",
    "amount": "500",
    "attachments": {"invoice": True},
    "invoiceNumber": "INV-001",
    "invoiceDate": "2026-10-01",
}


@pytest.fixture
def purchase_payload() -> dict:
    return dict(SAMPLE_PURCHASE)


@pytest.fixture
def login_as():
    """The `login` helper, for tests that build their own clients"""
    return login
