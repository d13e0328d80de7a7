"""
Unit Tests for Database Models

Checks table metadata: the constraints the stores rely on must exist.
"""

from dataclasses import fields

from rollcall.core.models import BehavioralNoteRow, ParticipationRecordRow, ProgramSessionRow
from rollcall.participation import BehavioralNote, ParticipationRecord, ProgramSession


def _constraint_names(model) -> set[str]:
    return {constraint.name for constraint in model.__table__.constraints if constraint.name}


def test_table_names():
    assert ProgramSessionRow.__tablename__ == "program_sessions"
    assert ParticipationRecordRow.__tablename__ == "participation_records"
    assert BehavioralNoteRow.__tablename__ == "behavioral_notes"


def test_unique_constraints():
    """Natural keys used for duplicate detection and the check-in upsert."""
    assert "uq_program_sessions_slot" in _constraint_names(ProgramSessionRow)
    assert "uq_participation_session_child" in _constraint_names(ParticipationRecordRow)
    assert "uq_behavioral_notes_record_provider" in _constraint_names(BehavioralNoteRow)


def test_check_constraints():
    assert {
        "check_session_time_range",
        "check_session_status",
        "check_session_capacity",
    } <= _constraint_names(ProgramSessionRow)
    assert "check_participation_status" in _constraint_names(ParticipationRecordRow)
    assert "check_behavioral_note_status" in _constraint_names(BehavioralNoteRow)


def test_columns_cover_domain_fields():
    """Every entity field maps to a column of the same name."""
    for model, entity in (
        (ProgramSessionRow, ProgramSession),
        (ParticipationRecordRow, ParticipationRecord),
        (BehavioralNoteRow, BehavioralNote),
    ):
        columns = set(model.__table__.columns.keys())
        assert {f.name for f in fields(entity)} <= columns


def test_foreign_keys_cascade():
    record_fk = next(iter(ParticipationRecordRow.__table__.c.session_id.foreign_keys))
    note_fk = next(iter(BehavioralNoteRow.__table__.c.participation_record_id.foreign_keys))

    assert record_fk.column.table.name == "program_sessions"
    assert record_fk.ondelete == "CASCADE"
    assert note_fk.column.table.name == "participation_records"
    assert note_fk.ondelete == "CASCADE"


def test_lock_version_defaults_to_one():
    column = ParticipationRecordRow.__table__.c.lock_version
    assert column.default.arg == 1
    assert not column.nullable
