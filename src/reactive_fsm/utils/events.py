"""Synchronous broadcast channel for transition notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("fsm.events")

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned by `EventBus.subscribe`."""

    __slots__ = ("id", "listener", "_bus")

    def __init__(self, sub_id: int, listener: Listener, bus: "EventBus") -> None:
        self.id = sub_id
        self.listener = listener
        self._bus: Optional[EventBus] = bus

    @property
    def active(self) -> bool:
        return self._bus is not None

    def unsubscribe(self) -> None:
        """Stop delivery to this listener. No-op once detached."""
        bus, self._bus = self._bus, None
        if bus is not None:
            bus._detach(self)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, active={self.active})"


class EventBus:
    """In-process pub/sub delivering every event to all current listeners.

    Delivery is synchronous and follows subscription order. ``publish`` works
    on a snapshot of the registrations, so listeners may subscribe or
    unsubscribe during delivery; a listener detached mid-publish is skipped.
    """

    def __init__(self) -> None:
        self._next_id = 1
        self._subscriptions: Dict[int, Subscription] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener and return its cancellable handle."""
        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed event bus")
        subscription = Subscription(self._next_id, listener, self)
        self._next_id += 1
        self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.unsubscribe()

    def publish(self, event: Any) -> int:
        """Deliver one event and return the number of invoked listeners."""
        invoked = 0
        for subscription in tuple(self._subscriptions.values()):
            if not subscription.active:
                continue
            subscription.listener(event)
            invoked += 1
        return invoked

    def close(self) -> None:
        """Detach every listener; outstanding handles become inert."""
        subscriptions = tuple(self._subscriptions.values())
        for subscription in subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._closed = True
        logger.debug("Event bus closed (%d listener(s) detached)", len(subscriptions))

    def _detach(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.id, None)


__all__ = ["EventBus", "Listener", "Subscription"]
