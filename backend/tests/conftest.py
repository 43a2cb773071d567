"""Shared pytest fixtures for the Reputation Engine test suite.

Provides:
- In-memory async SQLite database (no PostgreSQL needed for tests)
- AsyncSession factory
- FastAPI test client (httpx.AsyncClient)
- Pre-seeded test data (tenant, active campaign)
- Auth helpers (JWT tokens, credential vault)
"""

import os
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

TEST_MASTER_KEY = "0123456789abcdef" * 4

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-0123456789")
os.environ.setdefault("API_KEY_ENCRYPTION_KEY", TEST_MASTER_KEY)
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "colored")

from db.base import Base  # noqa: E402
from db.database import create_db_engine, create_session_factory  # noqa: E402
from core.crypto import SecretCipher, reset_cipher_cache  # noqa: E402
from core.security import create_access_token  # noqa: E402


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    # Import all models so Base.metadata knows about them
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a DB session for service-level tests and fixture data."""
    async_session_factory = create_session_factory(db_engine)
    async with async_session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db_engine):
    """Create a FastAPI app instance wired to the test database."""
    # Patch the database module to use our test engine
    import db.database as db_mod
    original_engine = db_mod.engine
    original_session = db_mod.AsyncSessionLocal

    db_mod.engine = db_engine
    db_mod.AsyncSessionLocal = create_session_factory(db_engine)
    reset_cipher_cache()

    from app.main import create_app
    test_app = create_app()

    yield test_app

    # Restore originals
    db_mod.engine = original_engine
    db_mod.AsyncSessionLocal = original_session
    reset_cipher_cache()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Crypto fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cipher() -> SecretCipher:
    """Cipher over the test master key."""
    return SecretCipher.from_hex(TEST_MASTER_KEY)


@pytest.fixture
def vault(db_session, cipher):
    """Credential vault bound to the test session."""
    from services.credential_vault import APIKeyRepository, CredentialVault

    return CredentialVault(APIKeyRepository(db_session), cipher=cipher)


# ---------------------------------------------------------------------------
# Test data fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_tenant(db_session):
    """Create a committed test tenant."""
    from db.models.tenant import Tenant

    unique_suffix = uuid4().hex[:8]
    tenant = Tenant(
        id=str(uuid4()),
        name=f"Test Business {unique_suffix}",
        slug=f"test-business-{unique_suffix}",
        is_active=True,
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
def auth_headers(test_tenant) -> dict:
    """Authorization headers for a business admin of the test tenant."""
    token = create_access_token(
        user_id=str(uuid4()),
        email="admin@example.com",
        tenant_id=test_tenant.id,
        role="admin",
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers(test_tenant) -> dict:
    """Authorization headers for a non-admin member of the test tenant."""
    token = create_access_token(
        user_id=str(uuid4()),
        email="member@example.com",
        tenant_id=test_tenant.id,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def active_campaign(db_session, test_tenant):
    """Active, reputation-protected campaign (threshold 3, google + tripadvisor)."""
    from db.models.campaign import Campaign

    campaign = Campaign(
        id=str(uuid4()),
        tenant_id=test_tenant.id,
        name="Post-visit review request",
        type="magic_link",
        status="active",
        target_platforms=["google", "tripadvisor"],
        magic_link_token="abc123",
        magic_link_url="http://localhost:3003/r/abc123",
        reputation_protection=True,
        reputation_threshold=3,
    )
    db_session.add(campaign)
    await db_session.commit()
    return campaign
