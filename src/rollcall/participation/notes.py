"""
Behavioral Note Workflow

Providers write notes about checked-in children; parents approve or reject
them; rejected notes can be revised and resubmitted. Parents only see
approved notes while the child has an active data-sharing consent. Consent
is checked when reading and never blocks a write.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Literal
from uuid import UUID

from . import events
from .domain import BehavioralNote, ParticipationRecord, normalize_notes
from .errors import InvalidRecordStatus, ValidationError

if TYPE_CHECKING:
    from .ports import AttendanceStore, BehavioralNoteStore, ConsentResolver, EventPublisher

logger = logging.getLogger(__name__)

ReviewDecision = Literal["approve", "reject"]


class BehavioralNoteWorkflow:
    """Moderation state machine for behavioral notes."""

    def __init__(
        self,
        notes: BehavioralNoteStore,
        attendance: AttendanceStore,
        consent: ConsentResolver,
        publisher: EventPublisher,
    ):
        self.notes = notes
        self.attendance = attendance
        self.consent = consent
        self.publisher = publisher

    # ========================================================================
    # Provider side
    # ========================================================================

    async def submit(
        self, record: ParticipationRecord, provider_id: UUID, content: str
    ) -> BehavioralNote:
        """Submit a note for parent review.

        Raises:
            InvalidRecordStatus: Child was never checked in (registered/absent)
            ValidationError: ``blank_content`` or ``content_too_long``
            DuplicateError: ``duplicate_note`` if this provider already wrote one
        """
        if not record.allows_behavioral_note():
            raise InvalidRecordStatus(
                f"Record {record.id} is {record.status}; notes require a check-in"
            )

        note = await self.notes.create(
            BehavioralNote.new(record=record, provider_id=provider_id, content=content)
        )
        logger.info(f"Behavioral note {note.id} submitted for record {record.id}")
        events.publish(self.publisher, events.behavioral_note_submitted(note))
        return note

    async def submit_for_record(
        self, record_id: UUID, provider_id: UUID, content: str
    ) -> BehavioralNote:
        """Load the record and submit; blank content is rejected before any lookup."""
        if normalize_notes(content) is None:
            raise ValidationError("Behavioral note content cannot be blank", code="blank_content")

        record = await self.attendance.get_by_id(record_id)
        return await self.submit(record, provider_id, content)

    async def revise(self, note: BehavioralNote, new_content: str) -> BehavioralNote:
        """Resubmit a rejected note with new content.

        Resubmission publishes ``behavioral_note_submitted`` again.
        """
        revised = await self.notes.update(note.revise(new_content))
        logger.info(f"Behavioral note {note.id} revised and resubmitted")
        events.publish(self.publisher, events.behavioral_note_submitted(revised))
        return revised

    async def revise_for_provider(
        self, note_id: UUID, provider_id: UUID, new_content: str
    ) -> BehavioralNote:
        note = await self.notes.get_by_id_and_provider(note_id, provider_id)
        return await self.revise(note, new_content)

    async def get_provider_note(self, record_id: UUID, provider_id: UUID) -> BehavioralNote:
        return await self.notes.get_by_participation_record_and_provider(record_id, provider_id)

    async def list_provider_notes(
        self, record_ids: Sequence[UUID], provider_id: UUID
    ) -> list[BehavioralNote]:
        return await self.notes.list_by_records_and_provider(record_ids, provider_id)

    # ========================================================================
    # Parent side
    # ========================================================================

    async def approve(self, note: BehavioralNote, actor_id: UUID | None = None) -> BehavioralNote:
        approved = await self.notes.update(note.approve())
        logger.info(f"Behavioral note {note.id} approved")
        events.publish(self.publisher, events.behavioral_note_approved(approved, actor_id))
        return approved

    async def reject(
        self,
        note: BehavioralNote,
        reason: str | None = None,
        actor_id: UUID | None = None,
    ) -> BehavioralNote:
        rejected = await self.notes.update(note.reject(reason))
        logger.info(f"Behavioral note {note.id} rejected")
        events.publish(self.publisher, events.behavioral_note_rejected(rejected, actor_id))
        return rejected

    async def review(
        self,
        note_id: UUID,
        parent_id: UUID,
        decision: ReviewDecision,
        reason: str | None = None,
    ) -> BehavioralNote:
        """Apply a parent's decision to a note addressed to them.

        Raises:
            ValidationError: ``invalid_decision`` unless decision is approve/reject
            NotFoundError: Note does not exist or belongs to another parent
        """
        if decision not in ("approve", "reject"):
            raise ValidationError(f"Unknown review decision: {decision!r}", code="invalid_decision")

        note = await self.notes.get_by_id_and_parent(note_id, parent_id)
        if decision == "approve":
            return await self.approve(note, actor_id=parent_id)
        return await self.reject(note, reason, actor_id=parent_id)

    async def list_pending_for_parent(self, parent_id: UUID) -> list[BehavioralNote]:
        return await self.notes.list_pending_by_parent(parent_id)

    async def list_approved_for_child(self, child_id: UUID) -> list[BehavioralNote]:
        """Approved notes about a child, or nothing without active consent."""
        if not await self.consent.has_active_consent(child_id):
            logger.debug(f"No active consent for child {child_id}; hiding behavioral notes")
            return []
        return await self.notes.list_approved_by_child(child_id)

    # ========================================================================
    # Erasure
    # ========================================================================

    async def anonymize_all_for_child(self, child_id: UUID) -> int:
        """Redact every note about a child (account deletion).

        Notes end up ``rejected`` with placeholder content and no reason.
        Safe to re-run: already redacted notes are still counted.
        """
        count = await self.notes.anonymize_all_for_child(child_id)
        logger.info(f"Anonymized {count} behavioral note(s) for child {child_id}")
        return count
