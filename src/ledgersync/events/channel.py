"""Typed publish/subscribe channel for SyncEvents."""

from __future__ import annotations

import logging
from typing import Callable

from .types import EventType, SyncEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[SyncEvent], None]


class Subscription:
    """Closable handle returned by EventChannel.subscribe."""

    def __init__(
        self,
        channel: EventChannel,
        callback: EventCallback,
        event_types: frozenset[EventType],
    ) -> None:
        self._channel = channel
        self.callback = callback
        self.event_types = event_types
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def accepts(self, event: SyncEvent) -> bool:
        return not self.event_types or event.type in self.event_types

    def close(self) -> None:
        """Detach from the channel. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._channel._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventChannel:
    """
    Synchronous fan-out to subscribers.

    A subscriber that raises is logged and skipped; the remaining subscribers
    still receive the event and the publisher never sees the exception.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(self, callback: EventCallback, *event_types: EventType) -> Subscription:
        """Subscribe to all events, or only to the given event types."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        sub = Subscription(self, callback, frozenset(event_types))
        self._subscriptions.append(sub)
        return sub

    def publish(self, event: SyncEvent) -> int:
        """Deliver `event`; returns the number of subscribers that raised."""
        failures = 0
        for sub in list(self._subscriptions):
            if not sub.active or not sub.accepts(event):
                continue
            try:
                sub.callback(event)
            except Exception:
                failures += 1
                logger.exception("Subscriber failed while handling %s", event.type.value)
        return failures

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
