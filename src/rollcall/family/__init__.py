"""
Family Service Integration

Resolvers for child info and consent owned by the family subsystem.
"""

from .resolver import FamilyServiceError, FamilyServiceResolver

__all__ = [
    "FamilyServiceError",
    "FamilyServiceResolver",
]
