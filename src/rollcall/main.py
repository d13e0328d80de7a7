"""
Rollcall Composition Root

Wires the participation core to its adapters: SQLAlchemy stores, the family
service resolver and the in-process event bus. Callers (HTTP handlers,
workers, scripts) build one ``Participation`` per database session.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from rollcall.config import settings
from rollcall.core.database import close_db, engine
from rollcall.events import DomainEventBus
from rollcall.family import FamilyServiceResolver
from rollcall.participation import (
    AttendanceLedger,
    BehavioralNoteWorkflow,
    RosterAggregator,
    SessionLifecycle,
)
from rollcall.participation.ports import ChildInfoResolver, ConsentResolver, EventPublisher
from rollcall.participation.repositories import get_stores

logger = logging.getLogger(__name__)

# Process-wide bus; subscribers register at startup
event_bus = DomainEventBus()


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL with a single stream handler."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@dataclass(frozen=True)
class Participation:
    """Participation services bound to one database session."""

    lifecycle: SessionLifecycle
    ledger: AttendanceLedger
    notes: BehavioralNoteWorkflow
    roster: RosterAggregator


def create_participation(
    db: AsyncSession,
    *,
    resolver: ChildInfoResolver | None = None,
    consent: ConsentResolver | None = None,
    publisher: EventPublisher | None = None,
) -> Participation:
    """Build the participation services for a worker's session.

    Args:
        db: Session owned by the calling worker
        resolver: Child info resolver (default: family service client)
        consent: Consent resolver (default: same object as resolver)
        publisher: Event publisher (default: process-wide bus)
    """
    stores = get_stores(db)
    family = resolver or FamilyServiceResolver.from_settings()
    consent_resolver = consent or family
    bus = publisher or event_bus

    ledger = AttendanceLedger(stores.sessions, stores.attendance, bus)
    return Participation(
        lifecycle=SessionLifecycle(stores.sessions, ledger, bus),
        ledger=ledger,
        notes=BehavioralNoteWorkflow(
            stores.notes, stores.attendance, consent_resolver, bus  # type: ignore[arg-type]
        ),
        roster=RosterAggregator(stores.sessions, stores.attendance, stores.notes, family),
    )


@asynccontextmanager
async def lifespan() -> AsyncGenerator[None, None]:
    """Process lifespan.

    Startup:
    - Configure logging
    - Verify database connection

    Shutdown:
    - Close database connections
    """
    configure_logging()
    logger.info(f"Rollcall starting ({settings.ENVIRONMENT})")

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    yield

    logger.info("Rollcall shutting down")
    await close_db()
