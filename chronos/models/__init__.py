"""
Database models package.
Importing this package registers every table on Base.metadata.
"""
from chronos.models.base import Base
from chronos.models.user import User
from chronos.models.meeting import Meeting, MeetingStatus, Participant, ParticipantStatus
from chronos.models.availability import Availability, Vote

__all__ = [
    'Base',
    'User',
    'Meeting',
    'MeetingStatus',
    'Participant',
    'ParticipantStatus',
    'Availability',
    'Vote',
]
