"""
In-Process Domain Event Bus

Routes domain events to handlers subscribed per (context, event_type).
Dispatch is best-effort: a failing handler is logged and never propagates
back into the code that published the event.
"""

import logging
from collections import defaultdict
from collections.abc import Callable

from rollcall.config import settings

from .domain_event import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class DomainEventBus:
    """Per-context publish/subscribe registry."""

    def __init__(self, enabled: bool | None = None):
        """Initialize an empty bus.

        Args:
            enabled: Override for Settings.EVENT_PUBLISHING_ENABLED
        """
        self.enabled = settings.EVENT_PUBLISHING_ENABLED if enabled is None else enabled
        self._handlers: dict[tuple[str, str], list[EventHandler]] = defaultdict(list)

    def subscribe(self, context: str, event_type: str, handler: EventHandler) -> None:
        self._handlers[(context, event_type)].append(handler)

    def dispatch(self, context: str, event: DomainEvent) -> None:
        """Deliver event to every handler subscribed for its type in context."""
        if not self.enabled:
            logger.debug(f"Event publishing disabled, dropping {event.event_type}")
            return

        handlers = self._handlers.get((context, event.event_type), [])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.warning(
                    f"Handler {getattr(handler, '__name__', handler)!r} failed for "
                    f"{context}/{event.event_type} ({event.aggregate_id}): {e}"
                )

        logger.debug(
            f"Dispatched {context}/{event.event_type} for {event.aggregate_id} "
            f"to {len(handlers)} handler(s)"
        )
