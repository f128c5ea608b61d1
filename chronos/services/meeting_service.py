"""
Meeting management service for database operations.
"""
import uuid
from datetime import date
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.logging_config import get_logger
from chronos.models import Meeting, MeetingStatus, Participant, ParticipantStatus, User
from chronos.utils import generate_share_token

logger = get_logger(__name__)


async def _generate_unique_share_token(session: AsyncSession) -> str:
    while True:
        token = generate_share_token()
        if await get_meeting_by_share_token(session, token) is None:
            return token


async def create_meeting(
    session: AsyncSession,
    title: str,
    created_by_user_id: uuid.UUID,
    description: Optional[str] = None
) -> Meeting:
    """
    Create a meeting and enroll its creator as the first participant.

    Args:
        session: Database session
        title: Meeting title
        created_by_user_id: Signed-in user creating the meeting
        description: Optional description

    Returns:
        The new meeting in PLANNING status
    """
    meeting = Meeting(
        title=title,
        description=description,
        share_token=await _generate_unique_share_token(session),
        status=MeetingStatus.PLANNING,
        created_by_user_id=created_by_user_id,
    )
    session.add(meeting)
    await session.flush()

    creator = await session.get(User, created_by_user_id)
    if creator is not None:
        session.add(Participant(
            meeting_id=meeting.id,
            user_id=creator.id,
            name=creator.name,
            email=creator.email,
            status=ParticipantStatus.THINKING,
        ))

    await session.commit()
    logger.info("meeting_created", meeting_id=str(meeting.id), created_by=str(created_by_user_id))
    return meeting


async def get_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> Optional[Meeting]:
    """Get a meeting by ID."""
    return await session.get(Meeting, meeting_id)


async def get_meeting_by_share_token(session: AsyncSession, share_token: str) -> Optional[Meeting]:
    """Get a meeting by its invite token."""
    result = await session.execute(select(Meeting).where(Meeting.share_token == share_token))
    return result.scalar_one_or_none()


async def update_meeting_status(
    session: AsyncSession,
    meeting_id: uuid.UUID,
    status: MeetingStatus,
    final_date: Optional[date] = None
) -> Optional[Meeting]:
    """
    Set a meeting's status (and optionally its final date).

    Only a COMPLETED meeting has a final date: moving to any other status
    clears it, and COMPLETED without a date keeps the one already set.
    Nothing in the service moves a meeting between statuses on its own.

    Returns:
        The updated meeting, or None if it does not exist
    """
    meeting = await get_meeting(session, meeting_id)
    if meeting is None:
        return None

    meeting.status = status
    if status != MeetingStatus.COMPLETED:
        meeting.final_date = None
    elif final_date is not None:
        meeting.final_date = final_date
    await session.commit()

    logger.info("meeting_status_updated", meeting_id=str(meeting_id), status=status.value)
    return meeting


async def get_meeting_creator(session: AsyncSession, meeting: Meeting) -> Optional[User]:
    if meeting.created_by_user_id is None:
        return None
    return await session.get(User, meeting.created_by_user_id)


async def get_meetings_for_user(session: AsyncSession, user_id: uuid.UUID) -> List[Meeting]:
    """Meetings the user participates in, newest first."""
    result = await session.execute(
        select(Meeting)
        .join(Participant, Participant.meeting_id == Meeting.id)
        .where(Participant.user_id == user_id)
        .order_by(Meeting.created_at.desc())
    )
    return list(result.scalars().unique().all())


async def is_user_participant(session: AsyncSession, meeting_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    result = await session.execute(
        select(Participant.id).where(
            Participant.meeting_id == meeting_id,
            Participant.user_id == user_id,
        )
    )
    return result.first() is not None
