"""
Meeting-related database models.
"""
import enum
import uuid

from sqlalchemy import Column, String, Text, Date, DateTime, Enum, ForeignKey, Index, Uuid, UniqueConstraint, text

from chronos.models.base import Base, utcnow


class MeetingStatus(str, enum.Enum):
    PLANNING = "PLANNING"
    VOTING = "VOTING"
    COMPLETED = "COMPLETED"


class ParticipantStatus(str, enum.Enum):
    """Derived lifecycle state; only the status recalculation writes it."""
    THINKING = "THINKING"          # no dates chosen
    CHOOSEN_DATE = "CHOOSEN_DATE"  # has dates, no vote for a common date
    VOTED = "VOTED"                # voted for a date everyone can make


class Meeting(Base):
    """A meeting being scheduled."""

    __tablename__ = 'meetings'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(MeetingStatus, native_enum=False, length=20), nullable=False, default=MeetingStatus.PLANNING)
    final_date = Column(Date, nullable=True)
    share_token = Column(String(32), nullable=False, unique=True, index=True)
    created_by_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Meeting(id={self.id}, title='{self.title}', status='{self.status}')>"


class Participant(Base):
    """Someone enrolled in one meeting, either linked to a user or a guest."""

    __tablename__ = 'participants'
    __table_args__ = (
        UniqueConstraint("meeting_id", "user_id", name="uq_participant_meeting_user"),
        # Guests are told apart by name only
        Index(
            "uq_participant_meeting_guest_name",
            "meeting_id",
            "name",
            unique=True,
            postgresql_where=text("user_id IS NULL"),
            sqlite_where=text("user_id IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    meeting_id = Column(Uuid, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)  # None for guests
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    status = Column(
        Enum(ParticipantStatus, native_enum=False, length=20),
        nullable=False,
        default=ParticipantStatus.THINKING,
    )
    joined_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Participant(id={self.id}, name='{self.name}', status='{self.status}')>"
