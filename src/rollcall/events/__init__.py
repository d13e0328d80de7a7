"""
Domain Events

Event envelope and the in-process bus that delivers it.
"""

from .bus import DomainEventBus, EventHandler
from .domain_event import DomainEvent

__all__ = [
    "DomainEvent",
    "DomainEventBus",
    "EventHandler",
]
