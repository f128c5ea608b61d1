"""
Builders turning ORM rows into response models.
"""
from typing import Dict, List, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from chronos.models import Meeting, Participant, User
from chronos.schemas import (
    MeetingResponse, ParticipantResponse, UserInfo, MeetingDetailResponse,
    AvailabilityResponse, VoteResponse,
)
from chronos.services import availability_service, meeting_service, participant_service, vote_service


def to_user_info(user: Optional[User]) -> Optional[UserInfo]:
    return UserInfo.model_validate(user) if user is not None else None


async def to_meeting_response(session: AsyncSession, meeting: Meeting) -> MeetingResponse:
    creator = await meeting_service.get_meeting_creator(session, meeting)
    return MeetingResponse(
        id=meeting.id,
        title=meeting.title,
        description=meeting.description,
        share_token=meeting.share_token,
        status=meeting.status,
        final_date=meeting.final_date,
        created_by=to_user_info(creator),
        created_at=meeting.created_at,
        updated_at=meeting.updated_at,
    )


def to_participant_response(participant: Participant, users: Dict[uuid.UUID, User]) -> ParticipantResponse:
    user = users.get(participant.user_id) if participant.user_id else None
    return ParticipantResponse(
        id=participant.id,
        meeting_id=participant.meeting_id,
        name=participant.name,
        email=participant.email,
        status=participant.status,
        user=to_user_info(user),
        is_authenticated=user is not None,
        joined_at=participant.joined_at,
    )


async def to_participant_responses(
    session: AsyncSession,
    participants: List[Participant]
) -> List[ParticipantResponse]:
    users = await participant_service.get_participant_users(session, participants)
    return [to_participant_response(p, users) for p in participants]


async def build_meeting_detail(session: AsyncSession, meeting: Meeting) -> MeetingDetailResponse:
    participants = await participant_service.get_participants_by_meeting(session, meeting.id)
    availabilities = await availability_service.get_availabilities_by_meeting(session, meeting.id)
    votes = await vote_service.get_votes_by_meeting(session, meeting.id)
    common_dates = await availability_service.get_common_available_dates(session, meeting.id)

    return MeetingDetailResponse(
        meeting=await to_meeting_response(session, meeting),
        participants=await to_participant_responses(session, participants),
        availabilities=[AvailabilityResponse.model_validate(a) for a in availabilities],
        votes=[VoteResponse.model_validate(v) for v in votes],
        common_available_dates=common_dates,
    )
