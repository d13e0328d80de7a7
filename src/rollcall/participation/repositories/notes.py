"""
SQLAlchemy implementation of BehavioralNoteStore.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from rollcall.core.models import BehavioralNoteRow
from rollcall.participation.domain import BehavioralNote, utc_now

from .base import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class BehavioralNoteRepository(SQLAlchemyRepository[BehavioralNote]):
    """Behavioral notes in the ``behavioral_notes`` table."""

    model_class = BehavioralNoteRow
    entity_class = BehavioralNote
    duplicate_code = "duplicate_note"

    async def create(self, note: BehavioralNote) -> BehavioralNote:
        return await self._insert(note)

    async def update(self, note: BehavioralNote) -> BehavioralNote:
        return await self._versioned_update(
            note,
            content=note.content,
            status=note.status,
            rejection_reason=note.rejection_reason,
            submitted_at=note.submitted_at,
            reviewed_at=note.reviewed_at,
        )

    async def get_by_id(self, note_id: UUID) -> BehavioralNote:
        return await self._get_one(self.table.c.id == note_id)

    async def get_by_id_and_provider(self, note_id: UUID, provider_id: UUID) -> BehavioralNote:
        c = self.table.c
        return await self._get_one(c.id == note_id, c.provider_id == provider_id)

    async def get_by_id_and_parent(self, note_id: UUID, parent_id: UUID) -> BehavioralNote:
        c = self.table.c
        return await self._get_one(c.id == note_id, c.parent_id == parent_id)

    async def list_pending_by_parent(self, parent_id: UUID) -> list[BehavioralNote]:
        c = self.table.c
        return await self._list(
            c.parent_id == parent_id,
            c.status == "pending_approval",
            order_by=(c.submitted_at.desc(),),
        )

    async def list_approved_by_child(self, child_id: UUID) -> list[BehavioralNote]:
        c = self.table.c
        return await self._list(
            c.child_id == child_id, c.status == "approved", order_by=(c.submitted_at.desc(),)
        )

    async def list_approved_by_children(
        self, child_ids: Sequence[UUID]
    ) -> dict[UUID, list[BehavioralNote]]:
        """Approved notes for many children in one query, grouped by child."""
        if not child_ids:
            return {}

        c = self.table.c
        notes = await self._list(
            c.child_id.in_(list(child_ids)),
            c.status == "approved",
            order_by=(c.submitted_at.desc(),),
        )
        grouped: dict[UUID, list[BehavioralNote]] = defaultdict(list)
        for note in notes:
            grouped[note.child_id].append(note)
        return dict(grouped)

    async def get_by_participation_record_and_provider(
        self, record_id: UUID, provider_id: UUID
    ) -> BehavioralNote:
        c = self.table.c
        return await self._get_one(
            c.participation_record_id == record_id, c.provider_id == provider_id
        )

    async def list_by_records_and_provider(
        self, record_ids: Sequence[UUID], provider_id: UUID
    ) -> list[BehavioralNote]:
        if not record_ids:
            return []
        c = self.table.c
        return await self._list(
            c.participation_record_id.in_(list(record_ids)), c.provider_id == provider_id
        )

    async def anonymize_all_for_child(self, child_id: UUID) -> int:
        """Overwrite every note about a child with the erasure placeholder.

        Returns the number of notes matched, including ones already anonymized.
        """
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.child_id == child_id)
            .values(
                **BehavioralNote.anonymized_attrs(),
                anonymized_at=func.coalesce(c.anonymized_at, utc_now()),
                lock_version=c.lock_version + 1,
                updated_at=utc_now(),
            )
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to anonymize behavioral notes for child {child_id}: {e}")
            raise

        count = result.rowcount or 0
        logger.debug(f"Anonymize matched {count} behavioral note(s) for child {child_id}")
        return count
