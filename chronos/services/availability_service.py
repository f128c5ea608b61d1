"""
Availability service: recording the dates participants can make.
"""
import uuid
from datetime import date, time
from typing import Optional, List

from sqlalchemy import select, delete, func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.logging_config import get_logger
from chronos.models import Availability, Participant
from chronos.monitoring import mutations_total
from chronos.services.participant_service import get_participant_in_meeting
from chronos.services.status_service import recalculate_participant_statuses

logger = get_logger(__name__)


async def _find_availability(
    session: AsyncSession,
    participant_id: uuid.UUID,
    available_date: date
) -> Optional[Availability]:
    result = await session.execute(
        select(Availability).where(
            Availability.participant_id == participant_id,
            Availability.date == available_date,
        )
    )
    return result.scalar_one_or_none()


async def add_availability(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID,
    available_date: date,
    time_from: Optional[time] = None,
    time_to: Optional[time] = None
) -> Optional[Availability]:
    """
    Record that a participant is available on a date, then recalculate statuses.

    Adding a date that is already recorded for the participant is a no-op
    and returns the existing row (time bounds are left as they were).

    Args:
        session: Database session
        participant_id: Participant the date belongs to
        meeting_id: Meeting the participant must belong to
        available_date: Calendar date
        time_from: Optional start of the free window
        time_to: Optional end of the free window

    Returns:
        The stored availability, or None if the participant is not in the meeting
    """
    participant = await get_participant_in_meeting(session, participant_id, meeting_id)
    if participant is None:
        logger.info("availability_rejected", participant_id=str(participant_id), meeting_id=str(meeting_id))
        return None

    availability = await _find_availability(session, participant_id, available_date)
    if availability is None:
        availability = Availability(
            participant_id=participant_id,
            meeting_id=participant.meeting_id,
            date=available_date,
            time_from=time_from,
            time_to=time_to,
        )
        session.add(availability)
        try:
            await session.commit()
        except IntegrityError:
            # A concurrent request stored the same date first
            await session.rollback()
            availability = await _find_availability(session, participant_id, available_date)
            if availability is None:
                raise
        else:
            mutations_total.labels(operation="add_availability").inc()
            logger.info(
                "availability_added",
                participant_id=str(participant_id),
                meeting_id=str(meeting_id),
                date=available_date.isoformat(),
            )
    else:
        logger.debug("availability_already_recorded", participant_id=str(participant_id), date=available_date.isoformat())

    await recalculate_participant_statuses(session, meeting_id)
    return availability


async def remove_availability(
    session: AsyncSession,
    participant_id: uuid.UUID,
    meeting_id: uuid.UUID,
    available_date: date
) -> bool:
    """
    Delete a participant's availability for a date, then recalculate statuses.

    Statuses are recalculated even when nothing was deleted.

    Returns:
        True if a row was deleted, False if none matched
    """
    result = await session.execute(
        delete(Availability).where(
            Availability.participant_id == participant_id,
            Availability.meeting_id == meeting_id,
            Availability.date == available_date,
        )
    )
    await session.commit()
    removed = result.rowcount > 0

    if removed:
        mutations_total.labels(operation="remove_availability").inc()
        logger.info(
            "availability_removed",
            participant_id=str(participant_id),
            meeting_id=str(meeting_id),
            date=available_date.isoformat(),
        )

    await recalculate_participant_statuses(session, meeting_id)
    return removed


async def get_availabilities_by_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> List[Availability]:
    result = await session.execute(
        select(Availability)
        .where(Availability.meeting_id == meeting_id)
        .order_by(Availability.date, Availability.created_at)
    )
    return list(result.scalars().all())


async def get_availabilities_by_participant(session: AsyncSession, participant_id: uuid.UUID) -> List[Availability]:
    result = await session.execute(
        select(Availability)
        .where(Availability.participant_id == participant_id)
        .order_by(Availability.date)
    )
    return list(result.scalars().all())


async def get_availabilities_by_meeting_and_date(
    session: AsyncSession,
    meeting_id: uuid.UUID,
    available_date: date
) -> List[Availability]:
    result = await session.execute(
        select(Availability).where(
            Availability.meeting_id == meeting_id,
            Availability.date == available_date,
        )
    )
    return list(result.scalars().all())


async def get_common_available_dates(session: AsyncSession, meeting_id: uuid.UUID) -> List[date]:
    """
    Dates every participant is available on, computed by the database.

    Groups the meeting's availability by date and keeps dates whose
    distinct participant count equals the number of participants.

    Returns:
        Common dates in ascending order (empty when the meeting has no participants)
    """
    participant_count = await session.scalar(
        select(func.count(Participant.id)).where(Participant.meeting_id == meeting_id)
    )
    if not participant_count:
        return []

    result = await session.execute(
        select(Availability.date)
        .where(Availability.meeting_id == meeting_id)
        .group_by(Availability.date)
        .having(func.count(distinct(Availability.participant_id)) == participant_count)
        .order_by(Availability.date)
    )
    return list(result.scalars().all())
