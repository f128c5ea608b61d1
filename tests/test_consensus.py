"""
Tests for the common-date and participant-status rules.
"""
import pytest
from datetime import date

from chronos.models import ParticipantStatus
from chronos.services.consensus import resolve_common_dates, resolve_participant_status


D1 = date(2024, 3, 15)
D2 = date(2024, 3, 16)
D3 = date(2024, 3, 20)


@pytest.mark.unit
class TestResolveCommonDates:
    """Test common date resolution."""

    def test_no_participants_means_no_common_dates(self):
        """Test that zero participants never yields every date."""
        assert resolve_common_dates(0, [("p1", D1), ("p2", D1)]) == []

    def test_no_availability_means_no_common_dates(self):
        """Test that an empty availability set yields nothing."""
        assert resolve_common_dates(3, []) == []

    def test_date_common_only_when_all_participants_have_it(self):
        """Test that a date needs every participant."""
        pairs = [("p1", D1), ("p2", D1), ("p1", D2)]

        assert resolve_common_dates(2, pairs) == [D1]

    def test_duplicate_rows_count_once_per_participant(self):
        """Test that repeated rows for one participant are not double counted."""
        pairs = [("p1", D1), ("p1", D1)]

        assert resolve_common_dates(2, pairs) == []
        assert resolve_common_dates(1, pairs) == [D1]

    def test_result_is_sorted_ascending(self):
        """Test deterministic ordering of the result."""
        pairs = [("p1", D3), ("p1", D1), ("p1", D2)]

        assert resolve_common_dates(1, pairs) == [D1, D2, D3]

    def test_single_participant_every_date_is_common(self):
        """Test that a lone participant's dates are all common."""
        assert resolve_common_dates(1, [("p1", D2), ("p1", D1)]) == [D1, D2]


@pytest.mark.unit
class TestResolveParticipantStatus:
    """Test participant status derivation."""

    def test_no_availability_is_thinking(self):
        """Test THINKING wins even when a common vote exists."""
        assert resolve_participant_status(set(), D1, {D1}) == ParticipantStatus.THINKING

    def test_availability_without_vote_is_choosen_date(self):
        """Test that dates without a vote give CHOOSEN_DATE."""
        assert resolve_participant_status({D1}, None, {D1}) == ParticipantStatus.CHOOSEN_DATE

    def test_vote_for_common_date_is_voted(self):
        """Test that a vote for a common date gives VOTED."""
        assert resolve_participant_status({D1}, D1, {D1}) == ParticipantStatus.VOTED

    def test_vote_for_non_common_date_is_choosen_date(self):
        """Test that vote presence alone is not enough for VOTED."""
        assert resolve_participant_status({D1, D3}, D3, {D1}) == ParticipantStatus.CHOOSEN_DATE

    def test_vote_with_empty_common_set_is_choosen_date(self):
        """Test a vote when nothing is common."""
        assert resolve_participant_status({D1}, D1, []) == ParticipantStatus.CHOOSEN_DATE
