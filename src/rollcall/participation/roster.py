"""
Roster Aggregator

Read side: a session with its participation records, each enriched with the
child's display data and, where the parent consented, safety fields and
approved behavioral notes.

Resolution is batched: one child-info call and one notes query per roster,
never one per record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID

from rollcall.core.schemas import (
    BehavioralNoteSchema,
    ParticipationRecordSchema,
    ProgramSessionSchema,
)

from .ports import ChildInfo

if TYPE_CHECKING:
    from .domain import BehavioralNote, ParticipationRecord, ProgramSession
    from .ports import AttendanceStore, BehavioralNoteStore, ChildInfoResolver, SessionStore

logger = logging.getLogger(__name__)

UNKNOWN_CHILD = ChildInfo(first_name="Unknown", last_name="Child", has_consent=False)


@dataclass(frozen=True)
class RosterEntry:
    """One roster line. Safety fields are None unless the parent consented."""

    record: ParticipationRecord
    child_name: str
    child_first_name: str
    child_last_name: str
    allergies: str | None = None
    support_needs: str | None = None
    emergency_contact: str | None = None
    behavioral_notes: list[BehavioralNote] = field(default_factory=list)


@dataclass(frozen=True)
class SessionRoster:
    session: ProgramSession
    roster: list[RosterEntry]


class RosterAggregator:
    """Builds consent-gated rosters for display."""

    def __init__(
        self,
        sessions: SessionStore,
        attendance: AttendanceStore,
        notes: BehavioralNoteStore,
        children: ChildInfoResolver,
    ):
        self.sessions = sessions
        self.attendance = attendance
        self.notes = notes
        self.children = children

    async def get_session_with_roster(self, session_id: UUID) -> SessionRoster:
        """
        Raises:
            NotFoundError: Session does not exist
        """
        session = await self.sessions.get_by_id(session_id)
        records = await self.attendance.list_by_session(session_id)
        child_info, notes_by_child = await self._batch_resolve(records)

        roster = [
            self._build_entry(
                record,
                child_info.get(record.child_id, UNKNOWN_CHILD),
                notes_by_child.get(record.child_id, []),
            )
            for record in records
        ]
        return SessionRoster(session=session, roster=roster)

    async def get_session_with_roster_enriched(self, session_id: UUID) -> dict[str, Any]:
        """Same roster flattened to plain dicts: session fields plus
        ``participation_records`` with the enrichment merged in."""
        result = await self.get_session_with_roster(session_id)

        enriched_records = []
        for entry in result.roster:
            record = ParticipationRecordSchema.model_validate(entry.record).model_dump()
            record.update(
                child_name=entry.child_name,
                child_first_name=entry.child_first_name,
                child_last_name=entry.child_last_name,
                allergies=entry.allergies,
                support_needs=entry.support_needs,
                emergency_contact=entry.emergency_contact,
                behavioral_notes=[
                    BehavioralNoteSchema.model_validate(note).model_dump()
                    for note in entry.behavioral_notes
                ],
            )
            enriched_records.append(record)

        session = ProgramSessionSchema.model_validate(result.session).model_dump()
        session["participation_records"] = enriched_records
        return session

    async def _batch_resolve(
        self, records: list[ParticipationRecord]
    ) -> tuple[dict[UUID, ChildInfo], dict[UUID, list[BehavioralNote]]]:
        child_ids = list(dict.fromkeys(record.child_id for record in records))
        if not child_ids:
            return {}, {}

        child_info = await self.children.resolve_children_info(child_ids)
        missing = len(child_ids) - len(child_info)
        if missing:
            logger.warning(f"{missing} child(ren) on roster could not be resolved")

        # Notes are only fetched for children whose parent has consented
        consented = [child_id for child_id, info in child_info.items() if info.has_consent]
        notes_by_child = await self.notes.list_approved_by_children(consented) if consented else {}
        return child_info, notes_by_child

    @staticmethod
    def _build_entry(
        record: ParticipationRecord, info: ChildInfo, notes: list[BehavioralNote]
    ) -> RosterEntry:
        if not info.has_consent:
            return RosterEntry(
                record=record,
                child_name=info.full_name,
                child_first_name=info.first_name,
                child_last_name=info.last_name,
            )

        return RosterEntry(
            record=record,
            child_name=info.full_name,
            child_first_name=info.first_name,
            child_last_name=info.last_name,
            allergies=info.allergies,
            support_needs=info.support_needs,
            emergency_contact=info.emergency_contact,
            behavioral_notes=notes,
        )
