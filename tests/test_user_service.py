"""
Tests for user service.
"""
import pytest
import httpx
from unittest.mock import AsyncMock, Mock, patch

from chronos.exceptions import AuthenticationError
from chronos.services.user_service import (
    upsert_user,
    get_user,
    get_user_by_provider_id,
    fetch_provider_profile,
)


@pytest.mark.unit
class TestUserService:
    """Test user service functions."""

    @pytest.mark.asyncio
    async def test_upsert_creates_user(self, test_db_session):
        """Test first sign-in creates an account."""
        user = await upsert_user(
            test_db_session,
            provider_id="oid-123",
            email="new@example.com",
            name="New User",
        )

        assert user.id is not None
        assert (await get_user_by_provider_id(test_db_session, "oid-123")).id == user.id

    @pytest.mark.asyncio
    async def test_upsert_updates_existing_user(self, test_db_session, user):
        """Test that a returning identity refreshes its profile."""
        updated = await upsert_user(
            test_db_session,
            provider_id="oid-alice",
            email="alice@new.example.com",
            name="Alice Smith",
            avatar_url="https://example.com/a.png",
        )

        assert updated.id == user.id
        assert updated.email == "alice@new.example.com"
        assert updated.name == "Alice Smith"
        assert updated.avatar_url == "https://example.com/a.png"

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, test_db_session):
        """Test getting user that doesn't exist."""
        assert await get_user_by_provider_id(test_db_session, "nonexistent") is None


def _mock_http_client(get_mock):
    client = AsyncMock()
    client.get = get_mock
    client.__aenter__.return_value = client
    client.__aexit__.return_value = None
    return client


@pytest.mark.unit
class TestFetchProviderProfile:
    """Test Microsoft Graph profile lookups."""

    @pytest.mark.asyncio
    async def test_fetch_profile_success(self):
        """Test a successful /me lookup."""
        response = Mock(status_code=200)
        response.json.return_value = {"displayName": "Test User", "mail": "test@example.com"}
        get_mock = AsyncMock(return_value=response)

        with patch("chronos.services.user_service.httpx.AsyncClient", return_value=_mock_http_client(get_mock)):
            profile = await fetch_provider_profile("token-abc")

        assert profile["displayName"] == "Test User"
        headers = get_mock.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer token-abc"
        assert get_mock.call_args.args[0].endswith("/me")

    @pytest.mark.asyncio
    async def test_fetch_profile_http_error(self):
        """Test that a non-200 response raises AuthenticationError."""
        get_mock = AsyncMock(return_value=Mock(status_code=401))

        with patch("chronos.services.user_service.httpx.AsyncClient", return_value=_mock_http_client(get_mock)):
            with pytest.raises(AuthenticationError):
                await fetch_provider_profile("expired")

    @pytest.mark.asyncio
    async def test_fetch_profile_timeout(self):
        """Test that a timeout raises AuthenticationError."""
        get_mock = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))

        with patch("chronos.services.user_service.httpx.AsyncClient", return_value=_mock_http_client(get_mock)):
            with pytest.raises(AuthenticationError, match="timed out"):
                await fetch_provider_profile("token")

    @pytest.mark.asyncio
    async def test_fetch_profile_connection_error(self):
        get_mock = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        with patch("chronos.services.user_service.httpx.AsyncClient", return_value=_mock_http_client(get_mock)):
            with pytest.raises(AuthenticationError, match="Error contacting"):
                await fetch_provider_profile("token")
