"""
Request dependencies: database session and caller identity.
"""
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.database import get_session
from chronos.exceptions import ForbiddenError, NotFoundError
from chronos.models import Participant, User
from chronos.services.participant_service import get_participant, can_user_modify_participant
from chronos.services.user_service import get_user


async def get_optional_user_id(request: Request) -> Optional[uuid.UUID]:
    """User id from the session cookie, or None for anonymous callers."""
    raw_user_id = request.session.get("user_id")
    if not raw_user_id:
        return None
    try:
        return uuid.UUID(raw_user_id)
    except ValueError:
        request.session.clear()
        return None


async def get_current_user_id(user_id: Optional[uuid.UUID] = Depends(get_optional_user_id)) -> uuid.UUID:
    """
    Get current user ID from session.

    Raises:
        HTTPException: If user is not authenticated
    """
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Please visit /auth/login first."
        )
    return user_id


async def get_optional_user(
    user_id: Optional[uuid.UUID] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    if user_id is None:
        return None
    return await get_user(session, user_id)


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await get_user(session, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session refers to an unknown user"
        )
    return user


async def get_modifiable_participant(
    participant_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_session),
) -> Participant:
    """
    Resolve the participant named in the path and check the caller may act on it.

    Raises:
        NotFoundError: Unknown participant
        ForbiddenError: Participant belongs to a different identity
    """
    participant = await get_participant(session, participant_id)
    if participant is None:
        raise NotFoundError("Participant not found")
    if not can_user_modify_participant(participant, user_id):
        raise ForbiddenError("You may only change your own availability and vote")
    return participant
