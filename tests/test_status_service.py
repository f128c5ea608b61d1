"""
Tests for participant status recalculation.
"""
import uuid
import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from chronos.exceptions import RecalculationError, InvariantViolationError
from chronos.models import Availability, Participant, ParticipantStatus, Vote
from chronos.services.status_service import recalculate_participant_statuses, _votes_by_participant


async def reload(session, participant):
    await session.refresh(participant)
    return participant.status


@pytest.mark.unit
class TestRecalculateParticipantStatuses:
    """Test the recalculation pass over a whole meeting."""

    @pytest.mark.asyncio
    async def test_thinking_when_no_availabilities(self, test_db_session, meeting, two_participants):
        """Test that participants without dates stay THINKING."""
        p1, p2 = two_participants

        result = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert result.common_dates == []
        assert result.changed == {}
        assert await reload(test_db_session, p1) == ParticipantStatus.THINKING
        assert await reload(test_db_session, p2) == ParticipantStatus.THINKING

    @pytest.mark.asyncio
    async def test_choosen_date_when_availability_without_vote(
        self, test_db_session, meeting, two_participants, march_15
    ):
        """Test CHOOSEN_DATE for a participant with dates and no vote."""
        p1, _ = two_participants
        test_db_session.add(Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15))
        await test_db_session.commit()

        result = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert result.changed == {p1.id: ParticipantStatus.CHOOSEN_DATE}
        assert await reload(test_db_session, p1) == ParticipantStatus.CHOOSEN_DATE

    @pytest.mark.asyncio
    async def test_voted_when_vote_is_for_common_date(
        self, test_db_session, meeting, two_participants, march_15
    ):
        """Test VOTED when the vote's date is common to everyone."""
        p1, p2 = two_participants
        test_db_session.add_all([
            Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15),
            Availability(participant_id=p2.id, meeting_id=meeting.id, date=march_15),
            Vote(participant_id=p1.id, meeting_id=meeting.id, voted_date=march_15),
        ])
        await test_db_session.commit()

        result = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert result.common_dates == [march_15]
        assert await reload(test_db_session, p1) == ParticipantStatus.VOTED
        assert await reload(test_db_session, p2) == ParticipantStatus.CHOOSEN_DATE

    @pytest.mark.asyncio
    async def test_choosen_date_when_vote_is_not_common(
        self, test_db_session, meeting, two_participants, march_15, march_20
    ):
        """Test that a vote for a date only one participant has is not VOTED."""
        p1, _ = two_participants
        test_db_session.add_all([
            Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15),
            Vote(participant_id=p1.id, meeting_id=meeting.id, voted_date=march_20),
        ])
        await test_db_session.commit()

        await recalculate_participant_statuses(test_db_session, meeting.id)

        assert await reload(test_db_session, p1) == ParticipantStatus.CHOOSEN_DATE

    @pytest.mark.asyncio
    async def test_back_to_thinking_after_removing_all_availabilities(
        self, test_db_session, meeting, two_participants, march_15
    ):
        """Test that losing the last date returns a participant to THINKING."""
        p1, _ = two_participants
        availability = Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15)
        test_db_session.add(availability)
        await test_db_session.commit()
        await recalculate_participant_statuses(test_db_session, meeting.id)
        assert await reload(test_db_session, p1) == ParticipantStatus.CHOOSEN_DATE

        await test_db_session.delete(availability)
        await test_db_session.commit()
        await recalculate_participant_statuses(test_db_session, meeting.id)

        assert await reload(test_db_session, p1) == ParticipantStatus.THINKING

    @pytest.mark.asyncio
    async def test_second_pass_writes_nothing(self, test_db_session, meeting, two_participants, march_15):
        """Test that recalculating twice without changes is a no-op the second time."""
        p1, p2 = two_participants
        test_db_session.add_all([
            Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15),
            Availability(participant_id=p2.id, meeting_id=meeting.id, date=march_15),
            Vote(participant_id=p2.id, meeting_id=meeting.id, voted_date=march_15),
        ])
        await test_db_session.commit()

        first = await recalculate_participant_statuses(test_db_session, meeting.id)
        second = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert len(first.changed) == 2
        assert second.changed == {}
        assert second.common_dates == first.common_dates

    @pytest.mark.asyncio
    async def test_meeting_without_participants_is_noop(self, test_db_session, meeting):
        """Test that an empty meeting returns without writing."""
        result = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert result.common_dates == []
        assert result.changed == {}

    @pytest.mark.asyncio
    async def test_unknown_meeting_is_noop(self, test_db_session):
        """Test recalculating a meeting id that does not exist."""
        result = await recalculate_participant_statuses(test_db_session, uuid.uuid4())

        assert result.changed == {}

    @pytest.mark.asyncio
    async def test_stale_in_memory_status_is_not_trusted(
        self, test_db_session, meeting, two_participants, march_15
    ):
        """Test that statuses are compared against the stored row, not a cached object."""
        p1, _ = two_participants
        test_db_session.add(Availability(participant_id=p1.id, meeting_id=meeting.id, date=march_15))
        await test_db_session.commit()
        await recalculate_participant_statuses(test_db_session, meeting.id)

        # Corrupt the cached object without flushing it
        p1.status = ParticipantStatus.VOTED
        test_db_session.expunge(p1)

        result = await recalculate_participant_statuses(test_db_session, meeting.id)

        assert result.changed == {}
        stored = await test_db_session.get(Participant, p1.id)
        assert stored.status == ParticipantStatus.CHOOSEN_DATE

    @pytest.mark.asyncio
    async def test_persist_failure_raises_recalculation_error(
        self, test_db_session, meeting, two_participants, march_15
    ):
        """Test that a failed write is reported, not swallowed."""
        p1, _ = two_participants
        meeting_id = meeting.id
        test_db_session.add(Availability(participant_id=p1.id, meeting_id=meeting_id, date=march_15))
        await test_db_session.commit()

        with patch.object(
            test_db_session, "commit",
            side_effect=OperationalError("UPDATE participants", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(RecalculationError) as exc_info:
                await recalculate_participant_statuses(test_db_session, meeting_id)

        assert exc_info.value.meeting_id == meeting_id


@pytest.mark.unit
class TestVotesByParticipant:
    """Test vote grouping used by recalculation."""

    def test_one_vote_per_participant(self, march_15):
        """Test the normal case."""
        participant_id = uuid.uuid4()

        assert _votes_by_participant([(participant_id, march_15)]) == {participant_id: march_15}

    def test_two_votes_for_one_participant_fails_loudly(self, march_15, march_20):
        """Test that a broken one-vote invariant raises."""
        participant_id = uuid.uuid4()

        with pytest.raises(InvariantViolationError):
            _votes_by_participant([(participant_id, march_15), (participant_id, march_20)])
