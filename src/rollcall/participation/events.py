"""
Participation Events

Factories for the participation event catalog and the best-effort publish
helper used by every core service.

Event types:
- session_created, session_started, session_completed
- child_checked_in, child_checked_out, child_marked_absent
- behavioral_note_submitted, behavioral_note_approved, behavioral_note_rejected
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID

from rollcall.events import DomainEvent

from .domain import BehavioralNote, ParticipationRecord, ProgramSession, utc_now

if TYPE_CHECKING:
    from .ports import EventPublisher

logger = logging.getLogger(__name__)

CONTEXT = "participation"

PARTICIPATION_AGGREGATE = "participation"
BEHAVIORAL_NOTE_AGGREGATE = "behavioral_note"


def publish(publisher: EventPublisher, event: DomainEvent) -> None:
    """Dispatch an event without letting delivery failures escape.

    State has already been committed when this is called; a failed publish
    is logged and otherwise ignored.
    """
    try:
        publisher.dispatch(CONTEXT, event)
    except Exception as e:
        logger.warning(
            f"Failed to publish {event.event_type} for {event.aggregate_id}: {e}"
        )


# ============================================================================
# Session events
# ============================================================================


def session_created(session: ProgramSession, actor_id: UUID | None = None) -> DomainEvent:
    payload = {
        "session_id": session.id,
        "program_id": session.program_id,
        "session_date": session.session_date,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "location": session.location,
        "max_capacity": session.max_capacity,
        "actor_id": actor_id,
        "created_at": utc_now(),
    }
    return DomainEvent.new("session_created", session.id, PARTICIPATION_AGGREGATE, payload)


def session_started(session: ProgramSession, actor_id: UUID | None = None) -> DomainEvent:
    payload = {
        "session_id": session.id,
        "program_id": session.program_id,
        "actor_id": actor_id,
        "started_at": utc_now(),
    }
    return DomainEvent.new("session_started", session.id, PARTICIPATION_AGGREGATE, payload)


def session_completed(session: ProgramSession, actor_id: UUID | None = None) -> DomainEvent:
    payload = {
        "session_id": session.id,
        "program_id": session.program_id,
        "actor_id": actor_id,
        "completed_at": utc_now(),
    }
    return DomainEvent.new("session_completed", session.id, PARTICIPATION_AGGREGATE, payload)


# ============================================================================
# Participation record events
# ============================================================================


def child_checked_in(record: ParticipationRecord) -> DomainEvent:
    payload = {
        "record_id": record.id,
        "session_id": record.session_id,
        "child_id": record.child_id,
        "actor_id": record.check_in_by,
        "checked_in_at": record.check_in_at,
        "notes": record.check_in_notes,
    }
    return DomainEvent.new("child_checked_in", record.id, PARTICIPATION_AGGREGATE, payload)


def child_checked_out(record: ParticipationRecord) -> DomainEvent:
    payload = {
        "record_id": record.id,
        "session_id": record.session_id,
        "child_id": record.child_id,
        "actor_id": record.check_out_by,
        "checked_out_at": record.check_out_at,
        "notes": record.check_out_notes,
    }
    return DomainEvent.new("child_checked_out", record.id, PARTICIPATION_AGGREGATE, payload)


def child_marked_absent(record: ParticipationRecord, actor_id: UUID | None = None) -> DomainEvent:
    payload = {
        "record_id": record.id,
        "session_id": record.session_id,
        "child_id": record.child_id,
        "actor_id": actor_id,
        "marked_absent_at": utc_now(),
    }
    return DomainEvent.new("child_marked_absent", record.id, PARTICIPATION_AGGREGATE, payload)


# ============================================================================
# Behavioral note events
# ============================================================================


def _note_payload(note: BehavioralNote, actor_id: UUID | None, at: Any) -> dict[str, Any]:
    return {
        "note_id": note.id,
        "participation_record_id": note.participation_record_id,
        "child_id": note.child_id,
        "provider_id": note.provider_id,
        "parent_id": note.parent_id,
        "actor_id": actor_id,
        "occurred_at": at,
    }


def behavioral_note_submitted(note: BehavioralNote) -> DomainEvent:
    payload = _note_payload(note, note.provider_id, note.submitted_at)
    return DomainEvent.new(
        "behavioral_note_submitted", note.id, BEHAVIORAL_NOTE_AGGREGATE, payload
    )


def behavioral_note_approved(note: BehavioralNote, actor_id: UUID | None = None) -> DomainEvent:
    payload = _note_payload(note, actor_id or note.parent_id, note.reviewed_at)
    return DomainEvent.new("behavioral_note_approved", note.id, BEHAVIORAL_NOTE_AGGREGATE, payload)


def behavioral_note_rejected(note: BehavioralNote, actor_id: UUID | None = None) -> DomainEvent:
    payload = _note_payload(note, actor_id or note.parent_id, note.reviewed_at)
    payload["rejection_reason"] = note.rejection_reason
    return DomainEvent.new("behavioral_note_rejected", note.id, BEHAVIORAL_NOTE_AGGREGATE, payload)
