"""
Participation Domain Models

Persistence-ignorant entities for program sessions, participation records
and behavioral notes. Every transition returns a new instance and leaves the
receiver untouched; persisting the result (and checking the lock_version) is
the store's job.

Status lifecycles:

    ProgramSession:       scheduled → in_progress → completed
                          scheduled → cancelled
    ParticipationRecord:  registered → checked_in → checked_out
                          registered → absent
    BehavioralNote:       pending_approval → approved
                          pending_approval → rejected → (revise) → pending_approval
                          any → rejected (erasure, final)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time
from typing import Literal
from uuid import UUID, uuid4

from .errors import InvalidStatusTransition, ValidationError

SessionStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]
RecordStatus = Literal["registered", "checked_in", "checked_out", "absent"]
NoteStatus = Literal["pending_approval", "approved", "rejected"]

SESSION_STATUSES = ("scheduled", "in_progress", "completed", "cancelled")
RECORD_STATUSES = ("registered", "checked_in", "checked_out", "absent")
NOTE_STATUSES = ("pending_approval", "approved", "rejected")

# Records a provider may write a behavioral note against
NOTE_ELIGIBLE_RECORD_STATUSES = ("checked_in", "checked_out")

MAX_NOTE_CONTENT_LENGTH = 1000
ANONYMIZED_NOTE_CONTENT = "[Removed - account deleted]"


def utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_notes(value: str | None) -> str | None:
    """Trim free-text notes; blank or missing becomes None."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def validate_note_content(content: str | None) -> str:
    """Validate behavioral note content and return it trimmed.

    Raises:
        ValidationError: ``blank_content`` when empty after trimming,
            ``content_too_long`` when over MAX_NOTE_CONTENT_LENGTH characters
    """
    if not isinstance(content, str):
        raise ValidationError("Behavioral note content is required", code="blank_content")

    trimmed = content.strip()
    if not trimmed:
        raise ValidationError("Behavioral note content cannot be blank", code="blank_content")
    if len(trimmed) > MAX_NOTE_CONTENT_LENGTH:
        raise ValidationError(
            f"Behavioral note content exceeds {MAX_NOTE_CONTENT_LENGTH} characters",
            code="content_too_long",
        )
    return trimmed


# ============================================================================
# Program Session
# ============================================================================


@dataclass(frozen=True)
class ProgramSession:
    """A single scheduled occurrence of a program."""

    id: UUID
    program_id: UUID
    session_date: date
    start_time: time
    end_time: time
    location: str | None = None
    max_capacity: int | None = None
    notes: str | None = None
    status: SessionStatus = "scheduled"
    lock_version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def new(
        cls,
        *,
        program_id: UUID,
        session_date: date,
        start_time: time,
        end_time: time,
        location: str | None = None,
        max_capacity: int | None = None,
        notes: str | None = None,
        id: UUID | None = None,  # noqa: A002
    ) -> ProgramSession:
        """Build a new session in ``scheduled`` status.

        Raises:
            ValidationError: ``invalid_time_range`` when end_time <= start_time,
                ``invalid_capacity`` when max_capacity is not positive
        """
        if end_time <= start_time:
            raise ValidationError(
                f"Session end time {end_time} must be after start time {start_time}",
                code="invalid_time_range",
            )
        if max_capacity is not None and max_capacity <= 0:
            raise ValidationError(
                f"Session capacity must be positive, got {max_capacity}",
                code="invalid_capacity",
            )

        return cls(
            id=id or uuid4(),
            program_id=program_id,
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            location=normalize_notes(location),
            max_capacity=max_capacity,
            notes=normalize_notes(notes),
        )

    def start(self) -> ProgramSession:
        return self._transition("scheduled", "in_progress")

    def complete(self) -> ProgramSession:
        return self._transition("in_progress", "completed")

    def cancel(self) -> ProgramSession:
        return self._transition("scheduled", "cancelled")

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "cancelled")

    def _transition(self, expected: SessionStatus, target: SessionStatus) -> ProgramSession:
        if self.status != expected:
            raise InvalidStatusTransition(
                f"Session {self.id} cannot move from {self.status} to {target}"
            )
        return replace(self, status=target)


# ============================================================================
# Participation Record
# ============================================================================


@dataclass(frozen=True)
class ParticipationRecord:
    """One child's participation in one session."""

    id: UUID
    session_id: UUID
    child_id: UUID
    parent_id: UUID | None = None
    provider_id: UUID | None = None
    status: RecordStatus = "registered"
    check_in_at: datetime | None = None
    check_in_by: UUID | None = None
    check_in_notes: str | None = None
    check_out_at: datetime | None = None
    check_out_by: UUID | None = None
    check_out_notes: str | None = None
    lock_version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def register(
        cls,
        *,
        session_id: UUID,
        child_id: UUID,
        parent_id: UUID | None = None,
        provider_id: UUID | None = None,
    ) -> ParticipationRecord:
        return cls(
            id=uuid4(),
            session_id=session_id,
            child_id=child_id,
            parent_id=parent_id,
            provider_id=provider_id,
        )

    def check_in(self, by: UUID, notes: str | None = None) -> ParticipationRecord:
        self._require("registered", "checked_in")
        return replace(
            self,
            status="checked_in",
            check_in_at=utc_now(),
            check_in_by=by,
            check_in_notes=normalize_notes(notes),
        )

    def check_out(self, by: UUID, notes: str | None = None) -> ParticipationRecord:
        self._require("checked_in", "checked_out")
        return replace(
            self,
            status="checked_out",
            check_out_at=utc_now(),
            check_out_by=by,
            check_out_notes=normalize_notes(notes),
        )

    def mark_absent(self) -> ParticipationRecord:
        self._require("registered", "absent")
        return replace(self, status="absent")

    def allows_behavioral_note(self) -> bool:
        return self.status in NOTE_ELIGIBLE_RECORD_STATUSES

    def _require(self, expected: RecordStatus, target: RecordStatus) -> None:
        if self.status != expected:
            raise InvalidStatusTransition(
                f"Participation record {self.id} cannot move from {self.status} to {target}"
            )


# ============================================================================
# Behavioral Note
# ============================================================================


@dataclass(frozen=True)
class BehavioralNote:
    """A provider's observation about a child, moderated by the parent."""

    id: UUID
    participation_record_id: UUID
    child_id: UUID
    provider_id: UUID
    content: str
    parent_id: UUID | None = None
    status: NoteStatus = "pending_approval"
    rejection_reason: str | None = None
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    anonymized_at: datetime | None = None
    lock_version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def new(cls, *, record: ParticipationRecord, provider_id: UUID, content: str) -> BehavioralNote:
        """Create a pending note for a participation record.

        The parent is copied from the record so the note can be routed for
        review without another lookup.
        """
        return cls(
            id=uuid4(),
            participation_record_id=record.id,
            child_id=record.child_id,
            parent_id=record.parent_id,
            provider_id=provider_id,
            content=validate_note_content(content),
            status="pending_approval",
            submitted_at=utc_now(),
        )

    def approve(self) -> BehavioralNote:
        self._require("pending_approval", "approved")
        return replace(self, status="approved", rejection_reason=None, reviewed_at=utc_now())

    def reject(self, reason: str | None = None) -> BehavioralNote:
        self._require("pending_approval", "rejected")
        return replace(
            self,
            status="rejected",
            rejection_reason=normalize_notes(reason),
            reviewed_at=utc_now(),
        )

    def revise(self, new_content: str) -> BehavioralNote:
        """Resubmit a rejected note with new content.

        Raises:
            InvalidStatusTransition: Note is not rejected, or was erased
        """
        self._require("rejected", "pending_approval")
        if self.is_anonymized:
            raise InvalidStatusTransition(
                f"Behavioral note {self.id} was erased and cannot be revised"
            )
        return replace(
            self,
            content=validate_note_content(new_content),
            status="pending_approval",
            rejection_reason=None,
            submitted_at=utc_now(),
            reviewed_at=None,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == "pending_approval"

    @property
    def is_approved(self) -> bool:
        return self.status == "approved"

    @property
    def is_rejected(self) -> bool:
        return self.status == "rejected"

    @property
    def is_anonymized(self) -> bool:
        return self.anonymized_at is not None

    @staticmethod
    def anonymized_attrs() -> dict[str, str | None]:
        """Column values every note of an erased account is rewritten to.

        The store also stamps anonymized_at, which makes the note final.
        """
        return {
            "content": ANONYMIZED_NOTE_CONTENT,
            "rejection_reason": None,
            "status": "rejected",
        }

    def _require(self, expected: NoteStatus, target: NoteStatus) -> None:
        if self.status != expected:
            raise InvalidStatusTransition(
                f"Behavioral note {self.id} cannot move from {self.status} to {target}"
            )
