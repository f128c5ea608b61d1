"""
Meeting and participant routes.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.api.converters import (
    build_meeting_detail, to_meeting_response, to_participant_responses, to_participant_response,
)
from chronos.api.deps import get_current_user, get_current_user_id, get_optional_user
from chronos.database import get_session
from chronos.exceptions import ForbiddenError, NotFoundError
from chronos.models import Meeting, User
from chronos.schemas import (
    CreateMeetingRequest, UpdateMeetingStatusRequest, AddParticipantRequest,
    MeetingResponse, MeetingDetailResponse, ParticipantResponse, ParticipationInfo,
)
from chronos.services import meeting_service, participant_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


async def _require_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> Meeting:
    meeting = await meeting_service.get_meeting(session, meeting_id)
    if meeting is None:
        raise NotFoundError("Meeting not found")
    return meeting


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    body: CreateMeetingRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a meeting; the creator joins it automatically."""
    meeting = await meeting_service.create_meeting(
        session,
        title=body.title,
        description=body.description,
        created_by_user_id=user.id,
    )
    return await to_meeting_response(session, meeting)


@router.get("/my", response_model=List[MeetingResponse])
async def my_meetings(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Meetings the current user participates in."""
    meetings = await meeting_service.get_meetings_for_user(session, user_id)
    return [await to_meeting_response(session, m) for m in meetings]


@router.get("/by-token/{share_token}", response_model=MeetingDetailResponse)
async def get_meeting_by_share_token(share_token: str, session: AsyncSession = Depends(get_session)):
    """Meeting detail for an invite link."""
    meeting = await meeting_service.get_meeting_by_share_token(session, share_token)
    if meeting is None:
        raise NotFoundError("Meeting not found")
    return await build_meeting_detail(session, meeting)


@router.get("/{meeting_id}", response_model=MeetingDetailResponse)
async def get_meeting(meeting_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    """Meeting with participants, availability, votes and common dates."""
    meeting = await _require_meeting(session, meeting_id)
    return await build_meeting_detail(session, meeting)


@router.patch("/{meeting_id}/status", response_model=MeetingResponse)
async def update_meeting_status(
    meeting_id: uuid.UUID,
    body: UpdateMeetingStatusRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Set the meeting status. Only the creator may do this."""
    meeting = await _require_meeting(session, meeting_id)
    if meeting.created_by_user_id != user_id:
        raise ForbiddenError("Only the meeting creator can change its status")

    meeting = await meeting_service.update_meeting_status(
        session, meeting_id, body.status, final_date=body.final_date
    )
    return await to_meeting_response(session, meeting)


@router.get("/{meeting_id}/participation", response_model=ParticipationInfo)
async def check_participation(
    meeting_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Whether the current user is enrolled in the meeting."""
    participant = await participant_service.get_participant_by_user(session, meeting_id, user_id)
    if participant is None:
        return ParticipationInfo(is_participant=False)

    users = await participant_service.get_participant_users(session, [participant])
    return ParticipationInfo(is_participant=True, participant=to_participant_response(participant, users))


@router.post("/{meeting_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_meeting(
    meeting_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Leave a meeting, dropping your dates and vote."""
    if not await participant_service.leave_meeting(session, meeting_id, user_id):
        raise NotFoundError("You are not a participant of this meeting")


@router.post(
    "/{meeting_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_participant(
    meeting_id: uuid.UUID,
    body: AddParticipantRequest,
    user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """Join a meeting as yourself (signed in) or as a named guest."""
    if user is not None and body.email is not None and body.email != user.email:
        raise ForbiddenError("Signed-in users can only add themselves")

    participant = await participant_service.add_participant(
        session,
        meeting_id,
        name=body.name,
        email=body.email,
        current_user=user,
    )
    if participant is None:
        raise NotFoundError("Meeting not found")

    users = await participant_service.get_participant_users(session, [participant])
    return to_participant_response(participant, users)


@router.get("/{meeting_id}/participants", response_model=List[ParticipantResponse])
async def list_participants(meeting_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    participants = await participant_service.get_participants_by_meeting(session, meeting_id)
    return await to_participant_responses(session, participants)
