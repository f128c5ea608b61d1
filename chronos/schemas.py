"""
Pydantic models for request/response validation.

JSON field names are camelCase to match the existing web client.
"""
from datetime import date, datetime, time
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from chronos.models import MeetingStatus, ParticipantStatus


class CamelModel(BaseModel):
    """Base model serializing to camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ============================================
# REQUESTS
# ============================================

class CreateMeetingRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class UpdateMeetingStatusRequest(CamelModel):
    status: MeetingStatus
    final_date: Optional[date] = None


class AddParticipantRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None


class UpdateAvailabilityRequest(CamelModel):
    """A date the participant can make, with an optional time window."""
    date: date
    time_from: Optional[time] = None
    time_to: Optional[time] = None

    @model_validator(mode="after")
    def check_time_window(self):
        if self.time_from and self.time_to and self.time_from > self.time_to:
            raise ValueError("timeFrom must not be after timeTo")
        return self


class CastVoteRequest(CamelModel):
    date: date


# ============================================
# RESPONSES
# ============================================

class UserInfo(CamelModel):
    """User information model."""
    id: UUID
    email: str
    name: str
    avatar_url: Optional[str] = None


class MeetingResponse(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    share_token: str
    status: MeetingStatus
    final_date: Optional[date] = None
    created_by: Optional[UserInfo] = None
    created_at: datetime
    updated_at: datetime


class ParticipantResponse(CamelModel):
    id: UUID
    meeting_id: UUID
    name: str
    email: Optional[str] = None
    status: ParticipantStatus
    user: Optional[UserInfo] = None
    is_authenticated: bool = False
    joined_at: datetime


class AvailabilityResponse(CamelModel):
    id: UUID
    participant_id: UUID
    meeting_id: UUID
    date: date
    time_from: Optional[time] = None
    time_to: Optional[time] = None
    created_at: datetime


class VoteResponse(CamelModel):
    id: UUID
    participant_id: UUID
    meeting_id: UUID
    voted_date: date
    created_at: datetime


class MeetingDetailResponse(CamelModel):
    """Everything a client polls to render a meeting."""
    meeting: MeetingResponse
    participants: List[ParticipantResponse]
    availabilities: List[AvailabilityResponse]
    votes: List[VoteResponse]
    common_available_dates: List[date]


class ParticipationInfo(CamelModel):
    is_participant: bool
    participant: Optional[ParticipantResponse] = None


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str
    details: Optional[str] = None


class HealthCheck(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: str
