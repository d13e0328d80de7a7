"""
SQLAlchemy implementation of AttendanceStore.
"""

import logging
from collections.abc import Sequence
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rollcall.core.models import ParticipationRecordRow, ProgramSessionRow
from rollcall.participation.domain import ParticipationRecord, normalize_notes, utc_now
from rollcall.participation.errors import InvalidStatusTransition, NotFoundError

from .base import SQLAlchemyRepository, is_foreign_key_violation

logger = logging.getLogger(__name__)

# Statuses an atomic check-in may overwrite; later statuses are final
CHECK_IN_OVERWRITABLE = ("registered", "checked_in")


class AttendanceRepository(SQLAlchemyRepository[ParticipationRecord]):
    """Participation records in the ``participation_records`` table."""

    model_class = ParticipationRecordRow
    entity_class = ParticipationRecord
    duplicate_code = "duplicate_attendance"

    async def create(self, record: ParticipationRecord) -> ParticipationRecord:
        return await self._insert(record)

    async def get_by_id(self, record_id: UUID) -> ParticipationRecord:
        return await self._get_one(self.table.c.id == record_id)

    async def get_by_session_and_child(
        self, session_id: UUID, child_id: UUID
    ) -> ParticipationRecord:
        c = self.table.c
        return await self._get_one(c.session_id == session_id, c.child_id == child_id)

    async def get_many_by_ids(self, record_ids: Sequence[UUID]) -> list[ParticipationRecord]:
        if not record_ids:
            return []
        return await self._list(self.table.c.id.in_(list(record_ids)))

    async def update(self, record: ParticipationRecord) -> ParticipationRecord:
        return await self._versioned_update(
            record,
            status=record.status,
            provider_id=record.provider_id,
            check_in_at=record.check_in_at,
            check_in_by=record.check_in_by,
            check_in_notes=record.check_in_notes,
            check_out_at=record.check_out_at,
            check_out_by=record.check_out_by,
            check_out_notes=record.check_out_notes,
        )

    async def list_by_session(self, session_id: UUID) -> list[ParticipationRecord]:
        c = self.table.c
        return await self._list(c.session_id == session_id, order_by=(c.created_at.asc(),))

    async def list_by_session_ids(self, session_ids: Sequence[UUID]) -> list[ParticipationRecord]:
        if not session_ids:
            return []
        c = self.table.c
        return await self._list(
            c.session_id.in_(list(session_ids)), order_by=(c.session_id, c.created_at.asc())
        )

    async def list_by_child(
        self,
        child_ids: Sequence[UUID],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ParticipationRecord]:
        """Participation history, most recent session first."""
        if not child_ids:
            return []

        c = self.table.c
        sessions = ProgramSessionRow.__table__.c
        stmt = (
            select(self.table)
            .join(ProgramSessionRow.__table__, sessions.id == c.session_id)
            .where(c.child_id.in_(list(child_ids)))
            .order_by(sessions.session_date.desc(), sessions.start_time.desc())
        )
        if start_date is not None:
            stmt = stmt.where(sessions.session_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(sessions.session_date <= end_date)

        result = await self.session.execute(stmt)
        return [self.to_domain(row) for row in result.all()]

    async def list_by_parent(self, parent_id: UUID) -> list[ParticipationRecord]:
        c = self.table.c
        return await self._list(c.parent_id == parent_id, order_by=(c.created_at.desc(),))

    async def check_in_atomic(
        self,
        session_id: UUID,
        child_id: UUID,
        provider_id: UUID,
        notes: str | None = None,
    ) -> ParticipationRecord:
        """Insert a checked-in record or overwrite the existing one's check-in.

        A single INSERT ... ON CONFLICT (session_id, child_id) DO UPDATE, so
        concurrent first check-ins for the same child converge on one row.
        Rows already checked out or absent are left alone.

        Raises:
            InvalidStatusTransition: The existing row is past check-in
            NotFoundError: The session does not exist
        """
        c = self.table.c
        now = utc_now()
        stmt = self.dialect_insert().values(
            id=uuid4(),
            session_id=session_id,
            child_id=child_id,
            provider_id=provider_id,
            status="checked_in",
            check_in_at=now,
            check_in_by=provider_id,
            check_in_notes=normalize_notes(notes),
            lock_version=1,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[c.session_id, c.child_id],
            set_={
                "status": "checked_in",
                "provider_id": stmt.excluded.provider_id,
                "check_in_at": stmt.excluded.check_in_at,
                "check_in_by": stmt.excluded.check_in_by,
                "check_in_notes": stmt.excluded.check_in_notes,
                "lock_version": c.lock_version + 1,
                "updated_at": stmt.excluded.updated_at,
            },
            where=c.status.in_(CHECK_IN_OVERWRITABLE),
        ).returning(*self.table.c)

        try:
            result = await self.session.execute(stmt)
            row = result.one_or_none()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if is_foreign_key_violation(e):
                raise NotFoundError(f"ProgramSession not found: {session_id}") from e
            logger.error(f"Atomic check-in failed for child {child_id} in {session_id}: {e}")
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Atomic check-in failed for child {child_id} in {session_id}: {e}")
            raise

        if row is None:
            raise InvalidStatusTransition(
                f"Child {child_id} can no longer be checked in to session {session_id}"
            )

        logger.debug(f"Atomic check-in for child {child_id} in {session_id} (record {row.id})")
        return self.to_domain(row)

    async def submit_batch(
        self, records: Sequence[ParticipationRecord]
    ) -> list[ParticipationRecord]:
        """Insert many records in one statement, skipping existing (session, child) pairs.

        Returns only the rows actually inserted.
        """
        if not records:
            return []

        c = self.table.c
        now = utc_now()
        rows_to_insert = [
            {**self.to_persistence(record), "created_at": now, "updated_at": now}
            for record in records
        ]
        stmt = (
            self.dialect_insert()
            .values(rows_to_insert)
            .on_conflict_do_nothing(index_elements=[c.session_id, c.child_id])
            .returning(*self.table.c)
        )
        try:
            result = await self.session.execute(stmt)
            rows = result.all()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Batch insert of {len(records)} participation records failed: {e}")
            raise

        logger.debug(f"Inserted {len(rows)} of {len(records)} participation records")
        return [self.to_domain(row) for row in rows]
