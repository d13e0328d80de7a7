"""
Participation Errors

Every failure raised by the participation core carries a stable ``code``
string so callers (and batch results) can report it without caring about
the exception class.
"""


class ParticipationError(Exception):
    """Base class for all participation failures."""

    code = "participation_error"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class ValidationError(ParticipationError):
    """Raised when input fails validation. Never retried."""

    code = "validation_failed"


class InvalidStatusTransition(ParticipationError):
    """Raised when an aggregate is not in a state that allows the transition."""

    code = "invalid_status_transition"


class InvalidRecordStatus(ParticipationError):
    """Raised when a participation record does not accept behavioral notes."""

    code = "invalid_record_status"


class StaleDataError(ParticipationError):
    """Raised when the stored lock_version moved on since the aggregate was read.

    Re-fetch and retry the same logical operation.
    """

    code = "stale_data"


class NotFoundError(ParticipationError):
    """Raised when an aggregate does not exist."""

    code = "not_found"


class DuplicateError(ParticipationError):
    """Raised on a unique-key violation."""

    code = "duplicate"
