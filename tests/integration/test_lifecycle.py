"""
Integration Tests for Session Lifecycle

Creation, status transitions and the absence cascade on completion.
"""

from datetime import date, time
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from rollcall.core.schemas import SessionCreate
from rollcall.participation import (
    DuplicateError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)

pytestmark = pytest.mark.integration


class TestCreateSession:
    """Test scheduling sessions."""

    async def test_create_from_mapping(self, participation, publisher):
        actor = uuid4()
        session = await participation.lifecycle.create(
            {
                "program_id": uuid4(),
                "session_date": "2026-11-02",
                "start_time": "09:00",
                "end_time": "10:00",
                "max_capacity": 10,
            },
            actor_id=actor,
        )

        assert session.status == "scheduled"
        assert session.session_date == date(2026, 11, 2)
        assert session.max_capacity == 10
        assert publisher.event_types == ["session_created"]
        assert publisher.of_type("session_created")[0].payload["actor_id"] == actor

    async def test_create_from_schema(self, participation):
        attrs = SessionCreate(
            program_id=uuid4(),
            session_date=date(2026, 11, 2),
            start_time=time(13, 0),
            end_time=time(14, 0),
        )

        session = await participation.lifecycle.create(attrs)

        assert session.start_time == time(13, 0)

    async def test_malformed_attributes(self, participation, publisher):
        with pytest.raises(ValidationError) as exc_info:
            await participation.lifecycle.create({"program_id": "not-a-uuid"})

        assert exc_info.value.code == "invalid_attributes"
        assert publisher.events == []

    async def test_invalid_time_range(self, make_session):
        with pytest.raises(ValidationError) as exc_info:
            await make_session(start_time=time(10, 0), end_time=time(9, 0))

        assert exc_info.value.code == "invalid_time_range"

    async def test_invalid_capacity(self, make_session):
        with pytest.raises(ValidationError) as exc_info:
            await make_session(max_capacity=0)

        assert exc_info.value.code == "invalid_capacity"

    async def test_duplicate_session(self, make_session):
        first = await make_session()

        with pytest.raises(DuplicateError) as exc_info:
            await make_session(program_id=first.program_id)

        assert exc_info.value.code == "duplicate_session"


class TestTransitions:
    """Test start, complete and cancel."""

    async def test_start_and_complete(self, participation, make_session, publisher):
        session = await make_session()

        started = await participation.lifecycle.start(session.id)
        completed = await participation.lifecycle.complete(session.id)

        assert started.status == "in_progress"
        assert completed.status == "completed"
        assert completed.lock_version == 3
        assert publisher.event_types == ["session_created", "session_started", "session_completed"]

    async def test_start_twice_leaves_state_unchanged(self, participation, make_session):
        session = await make_session()
        started = await participation.lifecycle.start(session.id)

        with pytest.raises(InvalidStatusTransition):
            await participation.lifecycle.start(session.id)

        current = await participation.lifecycle.get(session.id)
        assert current.status == "in_progress"
        assert current.lock_version == started.lock_version

    async def test_complete_requires_started_session(self, participation, make_session):
        session = await make_session()

        with pytest.raises(InvalidStatusTransition):
            await participation.lifecycle.complete(session.id)

    async def test_cancel_scheduled_session(self, participation, make_session, publisher):
        session = await make_session()

        cancelled = await participation.lifecycle.cancel(session.id)

        assert cancelled.status == "cancelled"
        assert "session_cancelled" not in publisher.event_types

    async def test_cancel_started_session_is_rejected(self, participation, make_session):
        session = await make_session()
        await participation.lifecycle.start(session.id)

        with pytest.raises(InvalidStatusTransition):
            await participation.lifecycle.cancel(session.id)

    async def test_start_missing_session(self, participation):
        with pytest.raises(NotFoundError):
            await participation.lifecycle.start(uuid4())


class TestCompletionCascade:
    """Test marking registered children absent on completion."""

    async def test_check_in_then_complete(
        self, participation, make_session, provider_id, publisher
    ):
        session = await make_session(
            session_date=date(2025, 6, 1),
            start_time=time(9, 0),
            end_time=time(10, 0),
            max_capacity=10,
        )
        child_a, child_b = uuid4(), uuid4()
        await participation.ledger.register(session.id, child_b)
        await participation.lifecycle.start(session.id)

        await participation.ledger.check_in_atomic(session.id, child_a, provider_id)
        roster = {r.child_id: r.status for r in await participation.ledger.list_roster(session.id)}
        assert roster[child_a] == "checked_in"

        await participation.lifecycle.complete(session.id)

        roster = {r.child_id: r.status for r in await participation.ledger.list_roster(session.id)}
        assert roster == {child_a: "checked_in", child_b: "absent"}
        absent_events = publisher.of_type("child_marked_absent")
        assert [e.payload["child_id"] for e in absent_events] == [child_b]

    async def test_one_failing_absence_does_not_stop_the_rest(
        self, participation, make_session
    ):
        session = await make_session()
        children = [uuid4() for _ in range(3)]
        for child_id in children:
            await participation.ledger.register(session.id, child_id)
        await participation.lifecycle.start(session.id)

        real_mark_absent = participation.ledger.mark_absent
        calls = 0

        async def flaky_mark_absent(record, actor_id=None):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("connection reset")
            return await real_mark_absent(record, actor_id)

        with patch.object(
            participation.ledger, "mark_absent", AsyncMock(side_effect=flaky_mark_absent)
        ):
            completed = await participation.lifecycle.complete(session.id)

        assert completed.status == "completed"
        statuses = sorted(r.status for r in await participation.ledger.list_roster(session.id))
        assert statuses == ["absent", "absent", "registered"]


class TestQueries:
    """Test session listing."""

    async def test_list_sessions(self, participation, make_session):
        program_id = uuid4()
        first = await make_session(program_id=program_id, start_time=time(8, 0))
        second = await make_session(
            program_id=program_id, start_time=time(12, 0), end_time=time(13, 0)
        )
        await make_session(session_date=date(2026, 10, 20))

        by_program = await participation.lifecycle.list_sessions(program_id=program_id)
        on_day = await participation.lifecycle.list_sessions(on=date(2026, 10, 18))

        assert [s.id for s in by_program] == [first.id, second.id]
        assert {s.id for s in on_day} == {first.id, second.id}

    async def test_list_provider_sessions(self, participation, make_session, provider_id):
        session = await make_session()
        await make_session()
        await participation.ledger.register(session.id, uuid4(), provider_id=provider_id)

        result = await participation.lifecycle.list_provider_sessions(
            provider_id, on=date(2026, 10, 18)
        )

        assert [s.id for s in result] == [session.id]
