"""
Rollcall SQLAlchemy Models
"""

from .base import Base, LockVersionMixin, TimestampMixin, UUIDPrimaryKeyMixin
from .participation import BehavioralNoteRow, ParticipationRecordRow, ProgramSessionRow

__all__ = [
    # Base
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    "LockVersionMixin",
    # Participation
    "ProgramSessionRow",
    "ParticipationRecordRow",
    "BehavioralNoteRow",
]
