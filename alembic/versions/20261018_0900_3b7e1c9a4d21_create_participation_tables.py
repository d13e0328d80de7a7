"""Create participation tables

Revision ID: 3b7e1c9a4d21
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9a4d21"  # pragma: allowlist secret
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "lock_version",
            sa.Integer(),
            server_default="1",
            nullable=False,
            comment="Optimistic lock version",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="Last update timestamp (UTC)",
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "program_sessions",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "program_id", "session_date", "start_time", name="uq_program_sessions_slot"
        ),
        sa.CheckConstraint("end_time > start_time", name="check_session_time_range"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
            name="check_session_status",
        ),
        sa.CheckConstraint(
            "max_capacity IS NULL OR max_capacity > 0", name="check_session_capacity"
        ),
    )
    op.create_index("idx_program_sessions_program", "program_sessions", ["program_id"])
    op.create_index("idx_program_sessions_date", "program_sessions", ["session_date"])

    op.create_table(
        "participation_records",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("child_id", sa.Uuid(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("provider_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_by", sa.Uuid(), nullable=True),
        sa.Column("check_in_notes", sa.Text(), nullable=True),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_by", sa.Uuid(), nullable=True),
        sa.Column("check_out_notes", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["program_sessions.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("session_id", "child_id", name="uq_participation_session_child"),
        sa.CheckConstraint(
            "status IN ('registered', 'checked_in', 'checked_out', 'absent')",
            name="check_participation_status",
        ),
    )
    op.create_index("idx_participation_child", "participation_records", ["child_id"])
    op.create_index("idx_participation_parent", "participation_records", ["parent_id"])
    op.create_index("idx_participation_provider", "participation_records", ["provider_id"])

    op.create_table(
        "behavioral_notes",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("participation_record_id", sa.Uuid(), nullable=False),
        sa.Column("child_id", sa.Uuid(), nullable=False),
        sa.Column("provider_id", sa.Uuid(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "anonymized_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set on account erasure; note is final",
        ),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["participation_record_id"], ["participation_records.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "participation_record_id", "provider_id", name="uq_behavioral_notes_record_provider"
        ),
        sa.CheckConstraint(
            "status IN ('pending_approval', 'approved', 'rejected')",
            name="check_behavioral_note_status",
        ),
    )
    op.create_index("idx_behavioral_notes_child", "behavioral_notes", ["child_id"])
    op.create_index(
        "idx_behavioral_notes_parent_status", "behavioral_notes", ["parent_id", "status"]
    )


def downgrade() -> None:
    op.drop_index("idx_behavioral_notes_parent_status", table_name="behavioral_notes")
    op.drop_index("idx_behavioral_notes_child", table_name="behavioral_notes")
    op.drop_table("behavioral_notes")

    op.drop_index("idx_participation_provider", table_name="participation_records")
    op.drop_index("idx_participation_parent", table_name="participation_records")
    op.drop_index("idx_participation_child", table_name="participation_records")
    op.drop_table("participation_records")

    op.drop_index("idx_program_sessions_date", table_name="program_sessions")
    op.drop_index("idx_program_sessions_program", table_name="program_sessions")
    op.drop_table("program_sessions")
