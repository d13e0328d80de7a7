"""
Domain Event

Immutable envelope for something that happened inside a bounded context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """A fact published after a state change has been committed.

    Attributes:
        event_type: Catalog name, e.g. ``child_checked_in``
        aggregate_id: ID of the aggregate the event is about
        aggregate_type: Aggregate family, e.g. ``participation``
        payload: Event-specific data (always includes ``actor_id``)
        event_id: Unique ID of this event instance
        occurred_at: UTC timestamp of the change
    """

    event_type: str
    aggregate_id: UUID
    aggregate_type: str
    payload: dict[str, Any]
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def new(
        cls,
        event_type: str,
        aggregate_id: UUID,
        aggregate_type: str,
        payload: dict[str, Any],
    ) -> DomainEvent:
        return cls(
            event_type=event_type,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            payload=dict(payload),
        )
