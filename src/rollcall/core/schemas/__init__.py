"""Pydantic schemas for input validation and serialization."""

from .participation import (
    BehavioralNoteSchema,
    ChildInfoPayload,
    ParticipationRecordSchema,
    ProgramSessionSchema,
    SessionCreate,
)

__all__ = [
    # Participation
    "SessionCreate",
    "ProgramSessionSchema",
    "ParticipationRecordSchema",
    "BehavioralNoteSchema",
    # Family service
    "ChildInfoPayload",
]
