"""
Session Lifecycle

Drives a ProgramSession through scheduled → in_progress → completed (or
scheduled → cancelled). Start and complete are triggered externally; nothing
here schedules them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

import pydantic

from rollcall.core.schemas import SessionCreate

from . import events
from .domain import ProgramSession, utc_now
from .errors import ParticipationError, ValidationError

if TYPE_CHECKING:
    from .ledger import AttendanceLedger
    from .ports import EventPublisher, SessionStore

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """Creates sessions and applies their status transitions."""

    def __init__(
        self,
        sessions: SessionStore,
        ledger: AttendanceLedger,
        publisher: EventPublisher,
    ):
        """
        Args:
            sessions: Session store
            ledger: Used to mark still-registered children absent on completion
            publisher: Domain event publisher
        """
        self.sessions = sessions
        self.ledger = ledger
        self.publisher = publisher

    async def create(
        self, attrs: SessionCreate | Mapping[str, Any], actor_id: UUID | None = None
    ) -> ProgramSession:
        """Schedule a new session.

        Raises:
            ValidationError: ``invalid_time_range``, ``invalid_capacity`` or
                ``invalid_attributes`` for malformed input
            DuplicateError: ``duplicate_session`` for an existing
                (program_id, session_date, start_time)
        """
        if not isinstance(attrs, SessionCreate):
            try:
                attrs = SessionCreate.model_validate(dict(attrs))
            except pydantic.ValidationError as e:
                raise ValidationError(str(e), code="invalid_attributes") from e

        session = ProgramSession.new(**attrs.model_dump())
        created = await self.sessions.create(session)

        logger.info(
            f"Session {created.id} scheduled for program {created.program_id} "
            f"on {created.session_date} {created.start_time}-{created.end_time}"
        )
        events.publish(self.publisher, events.session_created(created, actor_id))
        return created

    async def start(self, session_id: UUID, actor_id: UUID | None = None) -> ProgramSession:
        """Move a scheduled session to in_progress.

        Raises:
            NotFoundError, InvalidStatusTransition, StaleDataError
        """
        session = await self.sessions.get_by_id(session_id)
        started = await self.sessions.update(session.start())

        logger.info(f"Session {session_id} started")
        events.publish(self.publisher, events.session_started(started, actor_id))
        return started

    async def complete(self, session_id: UUID, actor_id: UUID | None = None) -> ProgramSession:
        """Complete an in-progress session and mark registered children absent.

        The session commit happens first and stands on its own. Each absence
        is then written independently; one failing record is logged and the
        rest are still attempted.

        Raises:
            NotFoundError, InvalidStatusTransition, StaleDataError
        """
        session = await self.sessions.get_by_id(session_id)
        completed = await self.sessions.update(session.complete())

        logger.info(f"Session {session_id} completed")
        events.publish(self.publisher, events.session_completed(completed, actor_id))

        marked, failed = await self._mark_registered_absent(session_id, actor_id)
        if marked or failed:
            logger.info(
                f"Session {session_id}: marked {marked} child(ren) absent, {failed} failed"
            )
        return completed

    async def cancel(self, session_id: UUID, actor_id: UUID | None = None) -> ProgramSession:
        """Cancel a session that has not started yet."""
        session = await self.sessions.get_by_id(session_id)
        cancelled = await self.sessions.update(session.cancel())
        logger.info(f"Session {session_id} cancelled by {actor_id or 'system'}")
        return cancelled

    # ========================================================================
    # Queries
    # ========================================================================

    async def get(self, session_id: UUID) -> ProgramSession:
        return await self.sessions.get_by_id(session_id)

    async def list_sessions(
        self, program_id: UUID | None = None, on: date | None = None
    ) -> list[ProgramSession]:
        """List a program's sessions, or the sessions on a date (default today)."""
        if program_id is not None:
            return await self.sessions.list_by_program(program_id)
        return await self.sessions.list_today_sessions(on or utc_now().date())

    async def list_provider_sessions(
        self, provider_id: UUID, on: date | None = None
    ) -> list[ProgramSession]:
        return await self.sessions.list_by_provider_and_date(provider_id, on or utc_now().date())

    async def _mark_registered_absent(
        self, session_id: UUID, actor_id: UUID | None
    ) -> tuple[int, int]:
        records = await self.ledger.attendance.list_by_session(session_id)
        marked = failed = 0

        for record in records:
            if record.status != "registered":
                continue
            try:
                await self.ledger.mark_absent(record, actor_id)
                marked += 1
            except ParticipationError as e:
                failed += 1
                logger.warning(
                    f"Could not mark record {record.id} absent for session {session_id}: {e.code}"
                )
            except Exception as e:
                failed += 1
                logger.error(
                    f"Unexpected error marking record {record.id} absent: {e}", exc_info=True
                )

        return marked, failed
