"""
Pytest configuration and fixtures.
"""
import os

# Settings are read at import time; point them at test values first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-sessions")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "True")

import uuid
from datetime import date

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from chronos.config import Settings
from chronos.models import Base, Meeting, MeetingStatus, Participant, ParticipantStatus, User


# ============================================
# TEST CONFIGURATION
# ============================================

@pytest.fixture(scope="session")
def test_settings():
    """Create test settings."""
    return Settings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        tenant_id="test-tenant-id",
        redirect_uri="http://localhost:8000/auth/callback",
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key-for-sessions",
        debug=True,
    )


# ============================================
# DATABASE FIXTURES
# ============================================

@pytest.fixture(scope="function")
async def test_engine():
    """Create a test database engine using in-memory SQLite."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_db_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# ============================================
# DATA FIXTURES
# ============================================

@pytest.fixture
async def user(test_db_session):
    """A signed-in account."""
    user = User(provider_id="oid-alice", email="alice@example.com", name="Alice")
    test_db_session.add(user)
    await test_db_session.commit()
    return user


@pytest.fixture
async def other_user(test_db_session):
    user = User(provider_id="oid-bob", email="bob@example.com", name="Bob")
    test_db_session.add(user)
    await test_db_session.commit()
    return user


@pytest.fixture
async def meeting(test_db_session):
    """A meeting with no participants."""
    meeting = Meeting(
        title="Team offsite",
        share_token=f"tok{uuid.uuid4().hex[:9]}",
        status=MeetingStatus.PLANNING,
    )
    test_db_session.add(meeting)
    await test_db_session.commit()
    return meeting


@pytest.fixture
async def two_participants(test_db_session, meeting):
    """Guests P1 and P2 in the meeting, both THINKING."""
    p1 = Participant(meeting_id=meeting.id, name="P1", status=ParticipantStatus.THINKING)
    test_db_session.add(p1)
    await test_db_session.commit()
    p2 = Participant(meeting_id=meeting.id, name="P2", status=ParticipantStatus.THINKING)
    test_db_session.add(p2)
    await test_db_session.commit()
    return p1, p2


@pytest.fixture
def march_15():
    return date(2024, 3, 15)


@pytest.fixture
def march_20():
    return date(2024, 3, 20)


# ============================================
# HTTP CLIENT FIXTURES
# ============================================

@pytest.fixture
def identity():
    """Mutable holder for the caller's user id; None means anonymous."""
    return {"user_id": None}


@pytest.fixture
async def api_client(test_db_session, identity):
    """Async client against the app with database and identity overridden."""
    from main import app
    from chronos.database import get_session
    from chronos.api.deps import get_optional_user_id

    async def _get_session():
        yield test_db_session

    async def _get_user_id():
        return identity["user_id"]

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_optional_user_id] = _get_user_id

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_msal_token_response():
    """Mock MSAL token response."""
    return {
        "access_token": "mock-access-token-" + "x" * 100,
        "refresh_token": "mock-refresh-token-" + "y" * 100,
        "expires_in": 3600,
        "id_token_claims": {
            "oid": "test-user-123",
            "preferred_username": "test@example.com",
            "email": "test@example.com",
            "name": "Test User",
        },
    }


@pytest.fixture
def mock_auth_flow():
    """Mock MSAL auth flow."""
    return {
        "auth_uri": "https://login.microsoftonline.com/authorize?client_id=test",
        "state": "test-state-123",
        "code_verifier": "test-verifier",
    }
