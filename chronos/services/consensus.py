"""
Common-date and participant-status rules.

Both functions are pure: they work on plain snapshots read from the
database and never touch a session.
"""
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Collection, List, Tuple, Hashable

from chronos.models import ParticipantStatus


def resolve_common_dates(
    participant_count: int,
    availability_pairs: Iterable[Tuple[Hashable, date]]
) -> List[date]:
    """
    Dates on which every participant of a meeting is available.

    Args:
        participant_count: Number of participants currently in the meeting
        availability_pairs: (participant_id, date) for every availability row

    Returns:
        Common dates in ascending order; empty when there are no participants
    """
    if participant_count <= 0:
        return []

    participants_by_date = defaultdict(set)
    for participant_id, available_date in availability_pairs:
        participants_by_date[available_date].add(participant_id)

    return sorted(
        available_date
        for available_date, participant_ids in participants_by_date.items()
        if len(participant_ids) == participant_count
    )


def resolve_participant_status(
    available_dates: Collection[date],
    voted_date: Optional[date],
    common_dates: Collection[date]
) -> ParticipantStatus:
    """
    Derive one participant's status.

    No availability means THINKING. With availability, a vote for a date
    in ``common_dates`` means VOTED; anything else (no vote, or a vote for
    a date that is not common) is CHOOSEN_DATE.
    """
    if not available_dates:
        return ParticipantStatus.THINKING
    if voted_date is not None and voted_date in common_dates:
        return ParticipantStatus.VOTED
    return ParticipantStatus.CHOOSEN_DATE
