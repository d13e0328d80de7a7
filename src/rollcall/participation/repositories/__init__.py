"""
Store Adapters

SQLAlchemy-backed implementations of the participation store ports, plus
the factory that picks the configured backend once per worker session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rollcall.config import settings

from .attendance import AttendanceRepository
from .notes import BehavioralNoteRepository
from .sessions import SessionRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from rollcall.participation.ports import AttendanceStore, BehavioralNoteStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stores:
    """The three participation stores bound to one database session."""

    sessions: SessionStore
    attendance: AttendanceStore
    notes: BehavioralNoteStore


def get_stores(db: AsyncSession, backend: str | None = None) -> Stores:
    """Build the stores for the configured backend.

    Args:
        db: Session owned by the calling worker
        backend: Override for Settings.STORE_BACKEND
    """
    backend = backend or settings.STORE_BACKEND
    if backend != "sqlalchemy":
        raise ValueError(f"Unknown store backend: {backend}")

    logger.debug(f"Building {backend} participation stores")
    return Stores(
        sessions=SessionRepository(db),
        attendance=AttendanceRepository(db),
        notes=BehavioralNoteRepository(db),
    )


__all__ = [
    "AttendanceRepository",
    "BehavioralNoteRepository",
    "SessionRepository",
    "Stores",
    "get_stores",
]
