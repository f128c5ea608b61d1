"""
Participant status recalculation.

Single place where participant statuses are written. Called synchronously
after every change that can affect them: availability added or removed,
vote cast or removed, participant joined or left.
"""
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.exceptions import RecalculationError, InvariantViolationError
from chronos.logging_config import get_logger, LogContext
from chronos.models import Availability, Participant, ParticipantStatus, Vote
from chronos.monitoring import track_recalculation, participant_status_changes_total, record_error
from chronos.services.consensus import resolve_common_dates, resolve_participant_status

logger = get_logger(__name__)


@dataclass
class RecalculationResult:
    """Outcome of one recalculation pass."""
    meeting_id: uuid.UUID
    common_dates: List[date] = field(default_factory=list)
    changed: Dict[uuid.UUID, ParticipantStatus] = field(default_factory=dict)


def _votes_by_participant(rows) -> Dict[uuid.UUID, date]:
    votes: Dict[uuid.UUID, date] = {}
    for participant_id, voted_date in rows:
        if participant_id in votes:
            raise InvariantViolationError(
                f"Participant {participant_id} has more than one vote"
            )
        votes[participant_id] = voted_date
    return votes


@track_recalculation
async def recalculate_participant_statuses(
    session: AsyncSession,
    meeting_id: uuid.UUID
) -> RecalculationResult:
    """
    Re-derive common dates and every participant's status for a meeting.

    Always reads the current rows (participants are re-loaded with
    ``populate_existing`` so nothing cached in the session is trusted).
    Each changed status is committed on its own: if a later load or write
    fails, earlier commits stay and RecalculationError is raised.

    Args:
        session: Database session
        meeting_id: Meeting to recalculate

    Returns:
        Common dates and the statuses that changed in this pass
    """
    result = RecalculationResult(meeting_id=meeting_id)

    with LogContext(meeting_id=str(meeting_id)):
        try:
            participants = (
                await session.execute(
                    select(Participant)
                    .where(Participant.meeting_id == meeting_id)
                    .order_by(Participant.joined_at)
                    .execution_options(populate_existing=True)
                )
            ).scalars().all()

            if not participants:
                logger.debug("recalculation_skipped", reason="no_participants")
                return result

            availability_rows = (
                await session.execute(
                    select(Availability.participant_id, Availability.date)
                    .where(Availability.meeting_id == meeting_id)
                )
            ).all()
            result.common_dates = resolve_common_dates(len(participants), availability_rows)
            common = set(result.common_dates)

            dates_by_participant = defaultdict(set)
            for participant_id, available_date in availability_rows:
                dates_by_participant[participant_id].add(available_date)

            votes = _votes_by_participant(
                (
                    await session.execute(
                        select(Vote.participant_id, Vote.voted_date)
                        .where(Vote.meeting_id == meeting_id)
                    )
                ).all()
            )

            for participant in participants:
                new_status = resolve_participant_status(
                    dates_by_participant.get(participant.id, set()),
                    votes.get(participant.id),
                    common,
                )
                if participant.status == new_status:
                    continue

                old_status = participant.status
                participant.status = new_status
                await session.commit()

                result.changed[participant.id] = new_status
                participant_status_changes_total.labels(status=new_status.value).inc()
                logger.info(
                    "participant_status_changed",
                    participant_id=str(participant.id),
                    old_status=old_status.value if old_status else None,
                    new_status=new_status.value,
                )

        except SQLAlchemyError as e:
            await session.rollback()
            record_error(type(e).__name__, "status_service")
            logger.error("recalculation_failed", error=str(e), committed_changes=len(result.changed))
            raise RecalculationError(
                f"Failed to recalculate participant statuses: {e}",
                meeting_id=meeting_id,
            ) from e

    logger.debug(
        "recalculation_completed",
        common_dates=[d.isoformat() for d in result.common_dates],
        changed=len(result.changed),
    )
    return result
