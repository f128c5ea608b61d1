"""
Vote service: each participant's pick for the final date.
"""
import uuid
from datetime import date
from typing import Optional, List

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.logging_config import get_logger
from chronos.models import Vote
from chronos.monitoring import mutations_total
from chronos.services.participant_service import get_participant_in_meeting
from chronos.services.status_service import recalculate_participant_statuses
from chronos.utils import retry_on_conflict

logger = get_logger(__name__)


@retry_on_conflict()
async def _replace_vote(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID,
    voted_date: date
) -> Vote:
    """Delete any previous vote and insert the new one in a single transaction."""
    try:
        await session.execute(
            delete(Vote).where(
                Vote.participant_id == participant_id,
                Vote.meeting_id == meeting_id,
            )
        )
        vote = Vote(participant_id=participant_id, meeting_id=meeting_id, voted_date=voted_date)
        session.add(vote)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning("vote_upsert_conflict", participant_id=str(participant_id), meeting_id=str(meeting_id))
        raise
    return vote


async def cast_vote(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID,
    voted_date: date
) -> Optional[Vote]:
    """
    Vote for a final date, replacing the participant's previous vote.

    Args:
        session: Database session
        participant_id: Voting participant
        meeting_id: Meeting the participant must belong to
        voted_date: Chosen date

    Returns:
        The new vote, or None if the participant is not in the meeting
    """
    participant = await get_participant_in_meeting(session, participant_id, meeting_id)
    if participant is None:
        logger.info("vote_rejected", participant_id=str(participant_id), meeting_id=str(meeting_id))
        return None

    vote = await _replace_vote(session, participant_id, meeting_id, voted_date)
    mutations_total.labels(operation="cast_vote").inc()
    logger.info(
        "vote_cast",
        participant_id=str(participant_id),
        meeting_id=str(meeting_id),
        voted_date=voted_date.isoformat(),
    )

    await recalculate_participant_statuses(session, meeting_id)
    return vote


async def remove_vote(session: AsyncSession, participant_id: uuid.UUID, meeting_id: uuid.UUID) -> bool:
    """
    Withdraw a participant's vote, then recalculate statuses.

    Returns:
        True if a vote existed, False otherwise
    """
    result = await session.execute(
        delete(Vote).where(
            Vote.participant_id == participant_id,
            Vote.meeting_id == meeting_id,
        )
    )
    await session.commit()
    removed = result.rowcount > 0

    if removed:
        mutations_total.labels(operation="remove_vote").inc()
        logger.info("vote_removed", participant_id=str(participant_id), meeting_id=str(meeting_id))

    await recalculate_participant_statuses(session, meeting_id)
    return removed


async def get_votes_by_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> List[Vote]:
    result = await session.execute(
        select(Vote).where(Vote.meeting_id == meeting_id).order_by(Vote.created_at)
    )
    return list(result.scalars().all())


async def get_vote_by_participant(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID
) -> Optional[Vote]:
    result = await session.execute(
        select(Vote).where(
            Vote.participant_id == participant_id,
            Vote.meeting_id == meeting_id,
        )
    )
    return result.scalar_one_or_none()
