"""
Custom exceptions for better error handling.
"""


class ChronosException(Exception):
    """Base exception for scheduling service errors."""
    status_code = 500


class NotFoundError(ChronosException):
    """Meeting, participant or vote does not exist (or is not in the stated meeting)."""
    status_code = 404


class ForbiddenError(ChronosException):
    """Caller may not act on the requested participant or meeting."""
    status_code = 403


class DuplicateParticipantError(ChronosException):
    """A guest with the same name already joined the meeting."""
    status_code = 400


class AuthenticationError(ChronosException):
    """OAuth code exchange or profile lookup failed."""
    status_code = 400


class ConfigurationError(ChronosException):
    """Configuration or environment variable errors."""
    status_code = 503


class RecalculationError(ChronosException):
    """Participant statuses could not be re-derived for a meeting.

    Rows committed before the failure (the triggering mutation, earlier
    participants' statuses) stay committed.
    """
    def __init__(self, message: str, meeting_id=None):
        self.meeting_id = meeting_id
        super().__init__(message)


class InvariantViolationError(ChronosException):
    """Stored data breaks a rule the write path guarantees."""
    pass
