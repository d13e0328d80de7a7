"""
SQLAlchemy implementation of SessionStore.
"""

from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy import select

from rollcall.core.models import ParticipationRecordRow, ProgramSessionRow
from rollcall.participation.domain import ProgramSession

from .base import SQLAlchemyRepository


class SessionRepository(SQLAlchemyRepository[ProgramSession]):
    """Program sessions in the ``program_sessions`` table."""

    model_class = ProgramSessionRow
    entity_class = ProgramSession
    duplicate_code = "duplicate_session"

    async def create(self, session: ProgramSession) -> ProgramSession:
        return await self._insert(session)

    async def get_by_id(self, session_id: UUID) -> ProgramSession:
        return await self._get_one(self.table.c.id == session_id)

    async def update(self, session: ProgramSession) -> ProgramSession:
        return await self._versioned_update(
            session,
            location=session.location,
            max_capacity=session.max_capacity,
            notes=session.notes,
            status=session.status,
        )

    async def list_by_program(self, program_id: UUID) -> list[ProgramSession]:
        c = self.table.c
        return await self._list(
            c.program_id == program_id, order_by=(c.session_date.asc(), c.start_time.asc())
        )

    async def list_today_sessions(self, on: date) -> list[ProgramSession]:
        c = self.table.c
        return await self._list(c.session_date == on, order_by=(c.start_time.asc(),))

    async def list_by_provider_and_date(self, provider_id: UUID, on: date) -> list[ProgramSession]:
        """Sessions on a date with at least one child assigned to the provider."""
        c = self.table.c
        records = ParticipationRecordRow.__table__.c
        assigned = (
            select(records.id)
            .where(records.session_id == c.id, records.provider_id == provider_id)
            .exists()
        )
        return await self._list(c.session_date == on, assigned, order_by=(c.start_time.asc(),))

    async def get_many_by_ids(self, session_ids: Sequence[UUID]) -> list[ProgramSession]:
        if not session_ids:
            return []
        return await self._list(self.table.c.id.in_(list(session_ids)))
