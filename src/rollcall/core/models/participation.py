"""
Participation Models

Program sessions, per-child participation records and behavioral notes.
"""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, LockVersionMixin, TimestampMixin, UUIDPrimaryKeyMixin


class ProgramSessionRow(Base, UUIDPrimaryKeyMixin, TimestampMixin, LockVersionMixin):
    """One scheduled occurrence of a program."""

    __tablename__ = "program_sessions"
    __table_args__ = (
        UniqueConstraint(
            "program_id", "session_date", "start_time", name="uq_program_sessions_slot"
        ),
        CheckConstraint("end_time > start_time", name="check_session_time_range"),
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
            name="check_session_status",
        ),
        CheckConstraint(
            "max_capacity IS NULL OR max_capacity > 0", name="check_session_capacity"
        ),
        Index("idx_program_sessions_program", "program_id"),
        Index("idx_program_sessions_date", "session_date"),
    )

    program_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    max_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="scheduled", comment="scheduled, in_progress, ..."
    )

    # Relationships
    participation_records: Mapped[list[ParticipationRecordRow]] = relationship(
        back_populates="session", cascade="all, delete-orphan", passive_deletes=True
    )


class ParticipationRecordRow(Base, UUIDPrimaryKeyMixin, TimestampMixin, LockVersionMixin):
    """A child's attendance in one session.

    child_id/parent_id/provider_id point into other subsystems and carry no
    foreign key.
    """

    __tablename__ = "participation_records"
    __table_args__ = (
        # Conflict target for the atomic check-in upsert
        UniqueConstraint("session_id", "child_id", name="uq_participation_session_child"),
        CheckConstraint(
            "status IN ('registered', 'checked_in', 'checked_out', 'absent')",
            name="check_participation_status",
        ),
        Index("idx_participation_child", "child_id"),
        Index("idx_participation_parent", "parent_id"),
        Index("idx_participation_provider", "provider_id"),
    )

    session_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("program_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    child_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    provider_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="registered")

    check_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_in_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    check_in_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    check_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    check_out_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    session: Mapped[ProgramSessionRow] = relationship(back_populates="participation_records")
    behavioral_notes: Mapped[list[BehavioralNoteRow]] = relationship(
        back_populates="participation_record", cascade="all, delete-orphan", passive_deletes=True
    )


class BehavioralNoteRow(Base, UUIDPrimaryKeyMixin, TimestampMixin, LockVersionMixin):
    """Provider observation about a child, moderated by the parent."""

    __tablename__ = "behavioral_notes"
    __table_args__ = (
        UniqueConstraint(
            "participation_record_id", "provider_id", name="uq_behavioral_notes_record_provider"
        ),
        CheckConstraint(
            "status IN ('pending_approval', 'approved', 'rejected')",
            name="check_behavioral_note_status",
        ),
        Index("idx_behavioral_notes_child", "child_id"),
        Index("idx_behavioral_notes_parent_status", "parent_id", "status"),
    )

    participation_record_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("participation_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    child_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    provider_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(
        Uuid, nullable=True, comment="Copied from the participation record"
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, comment="Trimmed, max 1000 chars")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending_approval")
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    anonymized_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Set on account erasure; note is final"
    )

    # Relationships
    participation_record: Mapped[ParticipationRecordRow] = relationship(
        back_populates="behavioral_notes"
    )
