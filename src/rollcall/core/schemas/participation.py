"""
Participation Pydantic Schemas

Input validation for session creation and serializable views of the
participation aggregates.
"""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# Request schemas
class SessionCreate(BaseModel):
    """Attributes for scheduling a new program session.

    Time-range and capacity rules are domain invariants and are checked by
    ProgramSession.new, not here.
    """

    program_id: UUID
    session_date: date
    start_time: time
    end_time: time
    location: str | None = Field(None, max_length=255)
    max_capacity: int | None = None
    notes: str | None = None


# Response schemas
class ProgramSessionSchema(BaseModel):
    """Program session view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    program_id: UUID
    session_date: date
    start_time: time
    end_time: time
    location: str | None = None
    max_capacity: int | None = None
    notes: str | None = None
    status: str
    lock_version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ParticipationRecordSchema(BaseModel):
    """Participation record view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    child_id: UUID
    parent_id: UUID | None = None
    provider_id: UUID | None = None
    status: str
    check_in_at: datetime | None = None
    check_in_by: UUID | None = None
    check_in_notes: str | None = None
    check_out_at: datetime | None = None
    check_out_by: UUID | None = None
    check_out_notes: str | None = None
    lock_version: int


class BehavioralNoteSchema(BaseModel):
    """Behavioral note view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participation_record_id: UUID
    child_id: UUID
    provider_id: UUID
    parent_id: UUID | None = None
    content: str
    status: str
    rejection_reason: str | None = None
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    anonymized_at: datetime | None = None


class ChildInfoPayload(BaseModel):
    """Child entry returned by the family service."""

    id: UUID
    first_name: str
    last_name: str = ""
    allergies: str | None = None
    support_needs: str | None = None
    emergency_contact: str | None = None
    has_consent: bool = False
