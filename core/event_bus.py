"""
Event bus for finance domain events.

Synchronous in-process pub/sub. Handlers run immediately in the publisher's
thread. Handler errors are logged and do not propagate: the write that
produced the event has already committed.
"""

import logging
from typing import Callable, Dict, List

from core.events import FinanceEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus.

    Subscribe by event class name (string), publish by event instance.
    Handlers are called synchronously in subscription order.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable):
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Name of event class to subscribe to (e.g. 'InvoicePaid')
            callback: Function to call when event is published
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> bool:
        """Remove a callback. Returns False if it was not subscribed."""
        callbacks = self._subscribers.get(event_type, [])
        if callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def publish(self, event: FinanceEvent):
        """
        Publish an event to all subscribers of that type.

        Args:
            event: FinanceEvent instance to publish
        """
        event_type = event.__class__.__name__

        for callback in list(self._subscribers.get(event_type, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
