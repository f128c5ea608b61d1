"""
User account service: sign-in upsert and identity provider profile lookups.
"""
import uuid
from typing import Optional, Dict

import httpx
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.config import settings
from chronos.exceptions import AuthenticationError
from chronos.logging_config import get_logger
from chronos.models import User

logger = get_logger(__name__)


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
    """Get a user by ID."""
    return await session.get(User, user_id)


async def get_user_by_provider_id(session: AsyncSession, provider_id: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.provider_id == provider_id))
    return result.scalar_one_or_none()


async def upsert_user(
    session: AsyncSession,
    provider_id: str,
    email: str,
    name: str,
    avatar_url: Optional[str] = None
) -> User:
    """
    Create or refresh the account for a signed-in identity.

    Args:
        session: Database session
        provider_id: Identity provider's stable user id
        email: User email
        name: Display name
        avatar_url: Optional avatar URL

    Returns:
        The stored user
    """
    user = await get_user_by_provider_id(session, provider_id)

    if user:
        user.email = email
        user.name = name
        if avatar_url:
            user.avatar_url = avatar_url
        await session.commit()
        logger.info("user_updated", user_id=str(user.id))
        return user

    user = User(provider_id=provider_id, email=email, name=name, avatar_url=avatar_url)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # First sign-in raced with another request for the same identity
        await session.rollback()
        user = await get_user_by_provider_id(session, provider_id)
        if user is None:
            raise
        return user

    logger.info("user_created", user_id=str(user.id))
    return user


async def fetch_provider_profile(access_token: str) -> Dict:
    """
    Fetch the signed-in user's profile from Microsoft Graph.

    Args:
        access_token: OAuth access token with User.Read

    Returns:
        Graph ``/me`` payload

    Raises:
        AuthenticationError: If the profile cannot be fetched
    """
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        try:
            response = await client.get(
                f"{settings.graph_api_base_url}/me",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                },
            )
        except httpx.TimeoutException:
            raise AuthenticationError("Request to Microsoft Graph timed out")
        except httpx.RequestError as e:
            raise AuthenticationError(f"Error contacting Microsoft Graph: {str(e)}")

    if response.status_code != 200:
        logger.warning("profile_fetch_failed", status_code=response.status_code)
        raise AuthenticationError(f"Failed to fetch profile: HTTP {response.status_code}")

    return response.json()
