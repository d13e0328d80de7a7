"""
Participation

Session lifecycle, attendance ledger, behavioral-note moderation and the
consent-gated roster read model. Store adapters live in
``rollcall.participation.repositories``.
"""

from .domain import (
    ANONYMIZED_NOTE_CONTENT,
    MAX_NOTE_CONTENT_LENGTH,
    BehavioralNote,
    ParticipationRecord,
    ProgramSession,
)
from .errors import (
    DuplicateError,
    InvalidRecordStatus,
    InvalidStatusTransition,
    NotFoundError,
    ParticipationError,
    StaleDataError,
    ValidationError,
)
from .ledger import AttendanceLedger, BulkCheckInResult, RegistrationEntry
from .lifecycle import SessionLifecycle
from .notes import BehavioralNoteWorkflow
from .ports import ChildInfo, ChildSafetyInfo
from .roster import RosterAggregator, RosterEntry, SessionRoster

__all__ = [
    # Domain
    "ProgramSession",
    "ParticipationRecord",
    "BehavioralNote",
    "MAX_NOTE_CONTENT_LENGTH",
    "ANONYMIZED_NOTE_CONTENT",
    # Errors
    "ParticipationError",
    "ValidationError",
    "InvalidStatusTransition",
    "InvalidRecordStatus",
    "StaleDataError",
    "NotFoundError",
    "DuplicateError",
    # Services
    "SessionLifecycle",
    "AttendanceLedger",
    "BulkCheckInResult",
    "RegistrationEntry",
    "BehavioralNoteWorkflow",
    "RosterAggregator",
    "RosterEntry",
    "SessionRoster",
    # Resolver values
    "ChildInfo",
    "ChildSafetyInfo",
]
