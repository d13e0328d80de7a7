"""
SQLAlchemy Base Model and Mixins

Provides base class and common mixins for all Rollcall models.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDPrimaryKeyMixin:
    """Mixin for UUID primary key.

    IDs are generated by the application so aggregates can be built (and
    referenced by events) before they are persisted.
    """

    id: Mapped[UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid4, comment="UUID primary key"
    )


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps (UTC).

    Stores write updated_at explicitly on versioned updates; the onupdate hook
    covers any other UPDATE issued against the table.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        comment="Last update timestamp (UTC)",
    )


class LockVersionMixin:
    """Mixin for the optimistic concurrency token.

    Stores compare and increment this column in the same UPDATE statement;
    a write that matches zero rows lost the race.
    """

    lock_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1", comment="Optimistic lock version"
    )

