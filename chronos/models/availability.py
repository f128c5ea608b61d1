"""
Availability and vote models.
"""
import uuid

from sqlalchemy import Column, Date, Time, DateTime, ForeignKey, Uuid, UniqueConstraint

from chronos.models.base import Base, utcnow


class Availability(Base):
    """One date a participant can make."""

    __tablename__ = 'availabilities'
    __table_args__ = (
        UniqueConstraint("participant_id", "date", name="uq_availability_participant_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    participant_id = Column(Uuid, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    meeting_id = Column(Uuid, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)  # always the participant's meeting
    date = Column(Date, nullable=False, index=True)
    time_from = Column(Time, nullable=True)
    time_to = Column(Time, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Availability(participant_id={self.participant_id}, date='{self.date}')>"


class Vote(Base):
    """A participant's pick for the final date. At most one per participant and meeting."""

    __tablename__ = 'votes'
    __table_args__ = (
        UniqueConstraint("participant_id", "meeting_id", name="uq_vote_participant_meeting"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    participant_id = Column(Uuid, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    meeting_id = Column(Uuid, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    voted_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Vote(participant_id={self.participant_id}, voted_date='{self.voted_date}')>"
