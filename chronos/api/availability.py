"""
Availability and vote routes.

Each mutation checks the caller may act on the participant, then runs the
service operation, which recalculates statuses before the response is sent.
"""
import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chronos.api.deps import get_modifiable_participant
from chronos.database import get_session
from chronos.exceptions import NotFoundError
from chronos.models import Participant
from chronos.schemas import AvailabilityResponse, CastVoteRequest, UpdateAvailabilityRequest, VoteResponse
from chronos.services import availability_service, vote_service

router = APIRouter(prefix="/meetings/{meeting_id}", tags=["availability"])


# ============================================
# AVAILABILITY
# ============================================

@router.put("/participants/{participant_id}/availability", response_model=AvailabilityResponse)
async def add_availability(
    meeting_id: uuid.UUID,
    body: UpdateAvailabilityRequest,
    participant: Participant = Depends(get_modifiable_participant),
    session: AsyncSession = Depends(get_session),
):
    """Mark a date as available for the participant."""
    availability = await availability_service.add_availability(
        session,
        participant.id,
        meeting_id,
        body.date,
        time_from=body.time_from,
        time_to=body.time_to,
    )
    if availability is None:
        raise NotFoundError("Participant is not part of this meeting")
    return availability


@router.delete(
    "/participants/{participant_id}/availability",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_availability(
    meeting_id: uuid.UUID,
    available_date: date = Query(..., alias="date"),
    participant: Participant = Depends(get_modifiable_participant),
    session: AsyncSession = Depends(get_session),
):
    """Unmark a date for the participant."""
    removed = await availability_service.remove_availability(session, participant.id, meeting_id, available_date)
    if not removed:
        raise NotFoundError("No availability recorded for this date")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/availability", response_model=List[AvailabilityResponse])
async def list_availability(meeting_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return await availability_service.get_availabilities_by_meeting(session, meeting_id)


@router.get("/common-dates", response_model=List[date])
async def common_dates(meeting_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    """Dates every participant can make."""
    return await availability_service.get_common_available_dates(session, meeting_id)


# ============================================
# VOTES
# ============================================

@router.put("/participants/{participant_id}/vote", response_model=VoteResponse)
async def cast_vote(
    meeting_id: uuid.UUID,
    body: CastVoteRequest,
    participant: Participant = Depends(get_modifiable_participant),
    session: AsyncSession = Depends(get_session),
):
    """Vote for the final date (replaces an earlier vote)."""
    vote = await vote_service.cast_vote(session, participant.id, meeting_id, body.date)
    if vote is None:
        raise NotFoundError("Participant is not part of this meeting")
    return vote


@router.delete("/participants/{participant_id}/vote", status_code=status.HTTP_204_NO_CONTENT)
async def remove_vote(
    meeting_id: uuid.UUID,
    participant: Participant = Depends(get_modifiable_participant),
    session: AsyncSession = Depends(get_session),
):
    """Withdraw the participant's vote."""
    if not await vote_service.remove_vote(session, participant.id, meeting_id):
        raise NotFoundError("No vote to remove")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/votes", response_model=List[VoteResponse])
async def list_votes(meeting_id: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return await vote_service.get_votes_by_meeting(session, meeting_id)
