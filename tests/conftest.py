"""
Pytest Configuration and Fixtures

Shared test fixtures for unit and integration tests.
"""

import os
from collections.abc import Callable, Sequence
from datetime import date, time
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import configure_mappers

from rollcall.core.database import build_engine
from rollcall.core.models import (  # noqa: F401 - imported for SQLAlchemy registration
    BehavioralNoteRow,
    Base,
    ParticipationRecordRow,
    ProgramSessionRow,
)
from rollcall.events import DomainEvent
from rollcall.main import Participation, create_participation
from rollcall.participation import ChildInfo, ChildSafetyInfo, ProgramSession

# Ensure all mappers are configured
configure_mappers()


class RecordingPublisher:
    """EventPublisher that keeps every dispatched event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, DomainEvent]] = []

    def dispatch(self, context: str, event: DomainEvent) -> None:
        self.events.append((context, event))

    @property
    def event_types(self) -> list[str]:
        return [event.event_type for _, event in self.events]

    def of_type(self, event_type: str) -> list[DomainEvent]:
        return [event for _, event in self.events if event.event_type == event_type]


class FakeFamilyResolver:
    """In-memory ChildInfoResolver and ConsentResolver."""

    def __init__(self) -> None:
        self.children: dict[UUID, ChildInfo] = {}
        self.batch_calls: list[list[UUID]] = []

    def add_child(
        self,
        first_name: str = "Ama",
        last_name: str = "Mensah",
        *,
        consent: bool = True,
        allergies: str | None = "Peanuts",
        support_needs: str | None = None,
        emergency_contact: str | None = "+233200000000",
    ) -> UUID:
        child_id = uuid4()
        self.children[child_id] = ChildInfo(
            first_name=first_name,
            last_name=last_name,
            allergies=allergies,
            support_needs=support_needs,
            emergency_contact=emergency_contact,
            has_consent=consent,
        )
        return child_id

    async def resolve_child_name(self, child_id: UUID) -> tuple[str, bool]:
        info = self.children.get(child_id)
        if info is None:
            return "Unknown Child", True
        return info.full_name, False

    async def resolve_child_safety_info(self, child_id: UUID) -> ChildSafetyInfo | None:
        info = self.children.get(child_id)
        if info is None:
            return None
        return ChildSafetyInfo(
            allergies=info.allergies,
            support_needs=info.support_needs,
            emergency_contact=info.emergency_contact,
        )

    async def resolve_children_info(self, child_ids: Sequence[UUID]) -> dict[UUID, ChildInfo]:
        self.batch_calls.append(list(child_ids))
        return {cid: self.children[cid] for cid in child_ids if cid in self.children}

    async def has_active_consent(self, child_id: UUID) -> bool:
        info = self.children.get(child_id)
        return bool(info and info.has_consent)


@pytest.fixture
async def async_engine(tmp_path):
    """Create async engine for testing.

    Defaults to a file-backed SQLite database so separate connections see the
    same data, with foreign keys enforced as on PostgreSQL; set
    TEST_DATABASE_URL to run against PostgreSQL.
    """
    database_url = os.getenv(
        "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'rollcall_test.db'}"
    )
    engine = build_engine(database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tests that need several independent sessions."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def family() -> FakeFamilyResolver:
    return FakeFamilyResolver()


@pytest.fixture
def participation(db_session, family, publisher) -> Participation:
    """Participation services wired to the test database and fakes."""
    return create_participation(db_session, resolver=family, publisher=publisher)


@pytest.fixture
def provider_id() -> UUID:
    return uuid4()


@pytest.fixture
def parent_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_session(participation) -> Callable:
    """Factory scheduling a session (9:00-11:00 on 2026-10-18 unless overridden)."""

    async def _make_session(**overrides) -> ProgramSession:
        attrs = {
            "program_id": uuid4(),
            "session_date": date(2026, 10, 18),
            "start_time": time(9, 0),
            "end_time": time(11, 0),
            "location": "Community Hall",
            "max_capacity": 20,
        }
        attrs.update(overrides)
        return await participation.lifecycle.create(attrs)

    return _make_session
