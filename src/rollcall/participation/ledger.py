"""
Attendance Ledger

Owns participation-record transitions: registration, check-in (explicit and
atomic), check-out, absence and batch check-in. Every single-record write
except ``check_in_atomic`` is conditioned on the lock_version read with the
record; a concurrent writer makes it fail with StaleDataError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from . import events
from .domain import ParticipationRecord
from .errors import InvalidStatusTransition, ParticipationError

if TYPE_CHECKING:
    from .ports import AttendanceStore, EventPublisher, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationEntry:
    """One child to place on a session roster."""

    child_id: UUID
    parent_id: UUID | None = None
    provider_id: UUID | None = None


@dataclass
class BulkCheckInResult:
    """Outcome of a batch check-in; failures never abort the batch.

    Attributes:
        successful: Records checked in, in request order
        failed: (record_id, error code) for every record that was not
    """

    successful: list[ParticipationRecord] = field(default_factory=list)
    failed: list[tuple[UUID, str]] = field(default_factory=list)


class AttendanceLedger:
    """Attendance operations over an AttendanceStore."""

    def __init__(
        self,
        sessions: SessionStore,
        attendance: AttendanceStore,
        publisher: EventPublisher,
    ):
        self.sessions = sessions
        self.attendance = attendance
        self.publisher = publisher

    # ========================================================================
    # Registration
    # ========================================================================

    async def register(
        self,
        session_id: UUID,
        child_id: UUID,
        parent_id: UUID | None = None,
        provider_id: UUID | None = None,
    ) -> ParticipationRecord:
        """Put a child on a session roster in ``registered`` status.

        Raises:
            NotFoundError: Session does not exist
            InvalidStatusTransition: Session is completed or cancelled
            DuplicateError: ``duplicate_attendance`` if the child is already on the roster
        """
        await self._require_open_session(session_id)
        record = ParticipationRecord.register(
            session_id=session_id, child_id=child_id, parent_id=parent_id, provider_id=provider_id
        )
        return await self.attendance.create(record)

    async def register_many(
        self, session_id: UUID, entries: Iterable[RegistrationEntry]
    ) -> list[ParticipationRecord]:
        """Register many children in one write; children already registered are skipped."""
        await self._require_open_session(session_id)
        records = [
            ParticipationRecord.register(
                session_id=session_id,
                child_id=entry.child_id,
                parent_id=entry.parent_id,
                provider_id=entry.provider_id,
            )
            for entry in entries
        ]
        created = await self.attendance.submit_batch(records)
        logger.info(
            f"Registered {len(created)} of {len(records)} children for session {session_id}"
        )
        return created

    # ========================================================================
    # Check-in / check-out
    # ========================================================================

    async def check_in_atomic(
        self,
        session_id: UUID,
        child_id: UUID,
        provider_id: UUID,
        notes: str | None = None,
    ) -> ParticipationRecord:
        """Check a child in whether or not a record already exists.

        Delegates to the store's native upsert; repeated or concurrent calls
        leave exactly one record carrying the latest call's check-in fields.

        Raises:
            NotFoundError: Session does not exist
            InvalidStatusTransition: Session is completed or cancelled, or the
                child was already checked out or marked absent
        """
        await self._require_open_session(session_id)
        record = await self.attendance.check_in_atomic(session_id, child_id, provider_id, notes)
        logger.info(f"Child {child_id} checked in to session {session_id} by {provider_id}")
        events.publish(self.publisher, events.child_checked_in(record))
        return record

    async def check_in(
        self, record: ParticipationRecord, by: UUID, notes: str | None = None
    ) -> ParticipationRecord:
        updated = await self.attendance.update(record.check_in(by, notes))
        logger.info(f"Participation record {record.id} checked in by {by}")
        events.publish(self.publisher, events.child_checked_in(updated))
        return updated

    async def check_out(
        self, record: ParticipationRecord, by: UUID, notes: str | None = None
    ) -> ParticipationRecord:
        updated = await self.attendance.update(record.check_out(by, notes))
        logger.info(f"Participation record {record.id} checked out by {by}")
        events.publish(self.publisher, events.child_checked_out(updated))
        return updated

    async def mark_absent(
        self, record: ParticipationRecord, actor_id: UUID | None = None
    ) -> ParticipationRecord:
        updated = await self.attendance.update(record.mark_absent())
        logger.info(f"Participation record {record.id} marked absent")
        events.publish(self.publisher, events.child_marked_absent(updated, actor_id))
        return updated

    async def record_check_in(
        self, record_id: UUID, by: UUID, notes: str | None = None
    ) -> ParticipationRecord:
        record = await self.attendance.get_by_id(record_id)
        return await self.check_in(record, by, notes)

    async def record_check_out(
        self, record_id: UUID, by: UUID, notes: str | None = None
    ) -> ParticipationRecord:
        record = await self.attendance.get_by_id(record_id)
        return await self.check_out(record, by, notes)

    async def bulk_check_in(
        self, record_ids: Sequence[UUID], by: UUID, notes: str | None = None
    ) -> BulkCheckInResult:
        """Check in each record independently and report partial success.

        Records are loaded in one round trip; each check-in is then its own
        version-guarded write.
        """
        result = BulkCheckInResult()
        unique_ids = list(dict.fromkeys(record_ids))
        found = {record.id: record for record in await self.attendance.get_many_by_ids(unique_ids)}

        for record_id in unique_ids:
            record = found.get(record_id)
            if record is None:
                result.failed.append((record_id, "not_found"))
                continue

            try:
                result.successful.append(await self.check_in(record, by, notes))
            except ParticipationError as e:
                result.failed.append((record_id, e.code))
            except Exception as e:
                logger.error(f"Unexpected error checking in record {record_id}: {e}", exc_info=True)
                result.failed.append((record_id, "unexpected_error"))

        logger.info(
            f"Bulk check-in by {by}: {len(result.successful)} succeeded, "
            f"{len(result.failed)} failed"
        )
        return result

    # ========================================================================
    # Queries
    # ========================================================================

    async def get_record(self, record_id: UUID) -> ParticipationRecord:
        return await self.attendance.get_by_id(record_id)

    async def list_roster(self, session_id: UUID) -> list[ParticipationRecord]:
        return await self.attendance.list_by_session(session_id)

    async def list_for_parent(self, parent_id: UUID) -> list[ParticipationRecord]:
        return await self.attendance.list_by_parent(parent_id)

    async def get_participation_history(
        self,
        child_id: UUID | None = None,
        child_ids: Sequence[UUID] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ParticipationRecord]:
        """Participation records for one or more children, newest session first."""
        ids = list(child_ids or [])
        if child_id is not None:
            ids.insert(0, child_id)
        return await self.attendance.list_by_child(ids, start_date, end_date)

    async def _require_open_session(self, session_id: UUID) -> None:
        session = await self.sessions.get_by_id(session_id)
        if session.is_terminal:
            raise InvalidStatusTransition(
                f"Session {session_id} is {session.status}; roster is closed"
            )
