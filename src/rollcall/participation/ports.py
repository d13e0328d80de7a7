"""
Participation Ports

Contracts the participation core depends on. The core never imports an
adapter; one concrete implementation of each store is chosen at startup
(see ``rollcall.participation.repositories.get_stores``).

Store conventions:
- ``get_*`` methods raise NotFoundError when nothing matches
- ``update`` writes only when the stored lock_version equals the one on the
  passed entity, and returns the entity with the incremented version;
  otherwise StaleDataError (row exists) or NotFoundError
- ``create`` raises DuplicateError on a unique-key violation
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from rollcall.events import DomainEvent

    from .domain import BehavioralNote, ParticipationRecord, ProgramSession


@dataclass(frozen=True)
class ChildInfo:
    """Display and safety data for one child, plus the consent flag."""

    first_name: str
    last_name: str
    allergies: str | None = None
    support_needs: str | None = None
    emergency_contact: str | None = None
    has_consent: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ChildSafetyInfo:
    """Safety/medical fields shown to providers only under consent."""

    allergies: str | None = None
    support_needs: str | None = None
    emergency_contact: str | None = None


class SessionStore(Protocol):
    async def create(self, session: ProgramSession) -> ProgramSession: ...

    async def get_by_id(self, session_id: UUID) -> ProgramSession: ...

    async def update(self, session: ProgramSession) -> ProgramSession: ...

    async def list_by_program(self, program_id: UUID) -> list[ProgramSession]: ...

    async def list_today_sessions(self, on: date) -> list[ProgramSession]: ...

    async def list_by_provider_and_date(
        self, provider_id: UUID, on: date
    ) -> list[ProgramSession]: ...

    async def get_many_by_ids(self, session_ids: Sequence[UUID]) -> list[ProgramSession]: ...


class AttendanceStore(Protocol):
    async def create(self, record: ParticipationRecord) -> ParticipationRecord: ...

    async def get_by_id(self, record_id: UUID) -> ParticipationRecord: ...

    async def get_by_session_and_child(
        self, session_id: UUID, child_id: UUID
    ) -> ParticipationRecord: ...

    async def get_many_by_ids(self, record_ids: Sequence[UUID]) -> list[ParticipationRecord]: ...

    async def update(self, record: ParticipationRecord) -> ParticipationRecord: ...

    async def list_by_session(self, session_id: UUID) -> list[ParticipationRecord]: ...

    async def list_by_child(
        self,
        child_ids: Sequence[UUID],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ParticipationRecord]: ...

    async def list_by_parent(self, parent_id: UUID) -> list[ParticipationRecord]: ...

    async def check_in_atomic(
        self,
        session_id: UUID,
        child_id: UUID,
        provider_id: UUID,
        notes: str | None = None,
    ) -> ParticipationRecord: ...

    async def list_by_session_ids(
        self, session_ids: Sequence[UUID]
    ) -> list[ParticipationRecord]: ...

    async def submit_batch(
        self, records: Sequence[ParticipationRecord]
    ) -> list[ParticipationRecord]: ...


class BehavioralNoteStore(Protocol):
    async def create(self, note: BehavioralNote) -> BehavioralNote: ...

    async def update(self, note: BehavioralNote) -> BehavioralNote: ...

    async def get_by_id(self, note_id: UUID) -> BehavioralNote: ...

    async def get_by_id_and_provider(self, note_id: UUID, provider_id: UUID) -> BehavioralNote: ...

    async def get_by_id_and_parent(self, note_id: UUID, parent_id: UUID) -> BehavioralNote: ...

    async def list_pending_by_parent(self, parent_id: UUID) -> list[BehavioralNote]: ...

    async def list_approved_by_child(self, child_id: UUID) -> list[BehavioralNote]: ...

    async def list_approved_by_children(
        self, child_ids: Sequence[UUID]
    ) -> dict[UUID, list[BehavioralNote]]: ...

    async def get_by_participation_record_and_provider(
        self, record_id: UUID, provider_id: UUID
    ) -> BehavioralNote: ...

    async def list_by_records_and_provider(
        self, record_ids: Sequence[UUID], provider_id: UUID
    ) -> list[BehavioralNote]: ...

    async def anonymize_all_for_child(self, child_id: UUID) -> int: ...


class ChildInfoResolver(Protocol):
    async def resolve_child_name(self, child_id: UUID) -> tuple[str, bool]:
        """Return (display name, not_found)."""
        ...

    async def resolve_child_safety_info(self, child_id: UUID) -> ChildSafetyInfo | None: ...

    async def resolve_children_info(self, child_ids: Sequence[UUID]) -> dict[UUID, ChildInfo]:
        """Batch lookup; unknown ids are simply absent from the result."""
        ...


class ConsentResolver(Protocol):
    async def has_active_consent(self, child_id: UUID) -> bool: ...


class EventPublisher(Protocol):
    def dispatch(self, context: str, event: DomainEvent) -> None: ...
