"""
Integration Tests for the Roster Aggregator

Consent gating of safety fields and notes, placeholder names for children
the family service does not know, batching of lookups and the flattened
view.
"""

from uuid import uuid4

import pytest

from rollcall.participation import NotFoundError

pytestmark = pytest.mark.integration


async def _approved_note(participation, record, provider_id, content="Kind to others"):
    note = await participation.notes.submit(record, provider_id, content)
    return await participation.notes.approve(note)


class TestSessionWithRoster:
    """Test the structured roster."""

    async def test_consenting_child_is_fully_enriched(
        self, participation, make_session, family, provider_id
    ):
        session = await make_session()
        child_id = family.add_child("Esi", "Owusu", consent=True, allergies="Peanuts")
        record = await participation.ledger.check_in_atomic(session.id, child_id, provider_id)
        note = await _approved_note(participation, record, provider_id)

        result = await participation.roster.get_session_with_roster(session.id)

        assert result.session.id == session.id
        [entry] = result.roster
        assert entry.child_name == "Esi Owusu"
        assert entry.child_first_name == "Esi"
        assert entry.child_last_name == "Owusu"
        assert entry.allergies == "Peanuts"
        assert entry.emergency_contact == "+233200000000"
        assert [n.id for n in entry.behavioral_notes] == [note.id]

    async def test_non_consenting_child_hides_safety_and_notes(
        self, participation, make_session, family, provider_id
    ):
        session = await make_session()
        child_id = family.add_child("Yaw", "Asante", consent=False, allergies="Dairy")
        record = await participation.ledger.check_in_atomic(session.id, child_id, provider_id)
        await _approved_note(participation, record, provider_id)

        result = await participation.roster.get_session_with_roster(session.id)

        [entry] = result.roster
        assert entry.child_name == "Yaw Asante"
        assert entry.allergies is None
        assert entry.support_needs is None
        assert entry.emergency_contact is None
        assert entry.behavioral_notes == []

    async def test_unknown_child_gets_placeholder(self, participation, make_session):
        session = await make_session()
        await participation.ledger.register(session.id, uuid4())

        result = await participation.roster.get_session_with_roster(session.id)

        [entry] = result.roster
        assert entry.child_name == "Unknown Child"
        assert entry.child_first_name == "Unknown"
        assert entry.child_last_name == "Child"
        assert entry.allergies is None
        assert entry.behavioral_notes == []

    async def test_only_approved_notes_are_shown(
        self, participation, make_session, family, provider_id
    ):
        session = await make_session()
        child_id = family.add_child(consent=True)
        record = await participation.ledger.check_in_atomic(session.id, child_id, provider_id)
        await participation.notes.submit(record, provider_id, "Still pending")
        rejected = await participation.notes.submit(record, uuid4(), "Will be rejected")
        await participation.notes.reject(rejected, "wrong child")

        result = await participation.roster.get_session_with_roster(session.id)

        assert result.roster[0].behavioral_notes == []

    async def test_child_info_is_resolved_in_one_batch(
        self, participation, make_session, family
    ):
        session = await make_session()
        child_ids = [family.add_child(f"Child{i}", "Test") for i in range(4)]
        for child_id in child_ids:
            await participation.ledger.register(session.id, child_id)

        result = await participation.roster.get_session_with_roster(session.id)

        assert len(result.roster) == 4
        assert len(family.batch_calls) == 1
        assert set(family.batch_calls[0]) == set(child_ids)

    async def test_empty_roster_makes_no_lookups(self, participation, make_session, family):
        session = await make_session()

        result = await participation.roster.get_session_with_roster(session.id)

        assert result.roster == []
        assert family.batch_calls == []

    async def test_missing_session(self, participation):
        with pytest.raises(NotFoundError):
            await participation.roster.get_session_with_roster(uuid4())


class TestEnrichedRoster:
    """Test the flattened dict view."""

    async def test_enriched_view(self, participation, make_session, family, provider_id):
        session = await make_session(location="Studio 2")
        consenting = family.add_child("Abena", "Darko", consent=True)
        withheld = family.add_child("Kwame", "Appiah", consent=False)
        record = await participation.ledger.check_in_atomic(session.id, consenting, provider_id)
        await participation.ledger.register(session.id, withheld)
        await _approved_note(participation, record, provider_id, "Led the warm-up")

        view = await participation.roster.get_session_with_roster_enriched(session.id)

        assert view["id"] == session.id
        assert view["location"] == "Studio 2"
        by_child = {r["child_id"]: r for r in view["participation_records"]}
        assert by_child[consenting]["child_name"] == "Abena Darko"
        assert by_child[consenting]["status"] == "checked_in"
        assert by_child[consenting]["allergies"] == "Peanuts"
        assert [n["content"] for n in by_child[consenting]["behavioral_notes"]] == [
            "Led the warm-up"
        ]
        assert by_child[withheld]["child_name"] == "Kwame Appiah"
        assert by_child[withheld]["allergies"] is None
        assert by_child[withheld]["behavioral_notes"] == []
