"""
Participant management service for database operations.
"""
import uuid
from typing import Optional, Dict, List, Iterable

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.exceptions import DuplicateParticipantError
from chronos.logging_config import get_logger
from chronos.models import Availability, Meeting, Participant, ParticipantStatus, User, Vote
from chronos.services.status_service import recalculate_participant_statuses

logger = get_logger(__name__)


async def get_participant(session: AsyncSession, participant_id: uuid.UUID) -> Optional[Participant]:
    """Get a participant by ID."""
    return await session.get(Participant, participant_id)


async def get_participant_in_meeting(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID
) -> Optional[Participant]:
    """
    Get a participant only if it belongs to the given meeting.

    Returns:
        The participant, or None when it does not exist or is in another meeting
    """
    participant = await get_participant(session, participant_id)
    if participant is None or participant.meeting_id != meeting_id:
        return None
    return participant


async def get_participants_by_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> List[Participant]:
    """All participants of a meeting, in join order."""
    result = await session.execute(
        select(Participant)
        .where(Participant.meeting_id == meeting_id)
        .order_by(Participant.joined_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_participant_by_user(
    session: AsyncSession,
    meeting_id: uuid.UUID,
    user_id: uuid.UUID
) -> Optional[Participant]:
    result = await session.execute(
        select(Participant).where(
            Participant.meeting_id == meeting_id,
            Participant.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def _get_guest_by_name(session: AsyncSession, meeting_id: uuid.UUID, name: str) -> Optional[Participant]:
    result = await session.execute(
        select(Participant).where(
            Participant.meeting_id == meeting_id,
            Participant.user_id.is_(None),
            Participant.name == name,
        )
    )
    return result.scalars().first()


async def add_participant(
    session: AsyncSession,
    meeting_id: uuid.UUID,
    name: str,
    email: Optional[str] = None,
    current_user: Optional[User] = None
) -> Optional[Participant]:
    """
    Enroll someone in a meeting.

    The participant is linked to ``current_user`` when the caller is signed in
    and either gave no email or gave their own; otherwise it is a guest.
    A signed-in user already enrolled gets their existing participant back.

    Args:
        session: Database session
        meeting_id: Meeting to join
        name: Display name
        email: Optional email
        current_user: Signed-in caller, if any

    Returns:
        The participant, or None if the meeting does not exist

    Raises:
        DuplicateParticipantError: A guest with this name is already enrolled
    """
    meeting = await session.get(Meeting, meeting_id)
    if meeting is None:
        return None

    user_id = None
    if current_user is not None and (email is None or email == current_user.email):
        user_id = current_user.id

    if user_id is not None:
        existing = await get_participant_by_user(session, meeting_id, user_id)
        if existing is not None:
            logger.info("participant_already_enrolled", meeting_id=str(meeting_id), participant_id=str(existing.id))
            return existing
    elif await _get_guest_by_name(session, meeting_id, name) is not None:
        raise DuplicateParticipantError(f"Participant named '{name}' already joined this meeting")

    participant = Participant(
        meeting_id=meeting_id,
        user_id=user_id,
        name=name,
        email=email,
        status=ParticipantStatus.THINKING,
    )
    session.add(participant)
    try:
        await session.commit()
    except IntegrityError:
        # Same user, or a guest with the same name, joined concurrently
        await session.rollback()
        if user_id is None:
            if await _get_guest_by_name(session, meeting_id, name) is not None:
                raise DuplicateParticipantError(f"Participant named '{name}' already joined this meeting")
            raise
        existing = await get_participant_by_user(session, meeting_id, user_id)
        if existing is None:
            raise
        return existing

    logger.info(
        "participant_added",
        meeting_id=str(meeting_id),
        participant_id=str(participant.id),
        guest=user_id is None,
    )

    # One more participant changes which dates are common to everyone
    await recalculate_participant_statuses(session, meeting_id)
    return participant


async def leave_meeting(session: AsyncSession, meeting_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """
    Remove a signed-in user's participant along with their dates and vote.

    Returns:
        True if the user was a participant, False otherwise
    """
    participant = await get_participant_by_user(session, meeting_id, user_id)
    if participant is None:
        return False

    participant_id = participant.id
    await session.execute(delete(Availability).where(Availability.participant_id == participant_id))
    await session.execute(delete(Vote).where(Vote.participant_id == participant_id))
    await session.delete(participant)
    await session.commit()

    logger.info("participant_left", meeting_id=str(meeting_id), participant_id=str(participant_id))
    await recalculate_participant_statuses(session, meeting_id)
    return True


async def get_participant_users(
    session: AsyncSession,
    participants: Iterable[Participant]
) -> Dict[uuid.UUID, User]:
    """Linked user accounts keyed by user id."""
    user_ids = {p.user_id for p in participants if p.user_id is not None}
    if not user_ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(user_ids)))
    return {user.id: user for user in result.scalars().all()}


def can_user_modify_participant(participant: Participant, user_id: Optional[uuid.UUID]) -> bool:
    """
    Anonymous callers may only act on guests; signed-in users only on
    participants linked to them.
    """
    if user_id is None:
        return participant.user_id is None
    return participant.user_id == user_id
