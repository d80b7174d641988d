"""Connectivity observer with a persisted manual-offline override."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from ledgersync.events import ConnectivityChanged, EventChannel, EventType, Subscription
from ledgersync.storage import LocalCache

logger = logging.getLogger(__name__)


class ConnectivitySignal(Protocol):
    """Platform "is connected" signal."""

    async def fetch(self) -> bool: ...

    def add_listener(self, callback: Callable[[bool], None]) -> Callable[[], None]: ...


class ConnectivityObserver:
    """
    Tracks physical connectivity and the manual-offline override.

    current() is False whenever the override is on. A physical
    disconnected->connected transition with the override off, or turning the
    override off while connected, calls `on_reconnect` exactly once.
    """

    def __init__(
        self,
        signal: ConnectivitySignal,
        cache: LocalCache,
        events: EventChannel,
        *,
        on_reconnect: Optional[Callable[[], None]] = None,
    ) -> None:
        self._signal = signal
        self._cache = cache
        self._events = events
        self._on_reconnect = on_reconnect
        self._physical = False
        self._manual_offline = False
        self._remove_listener: Optional[Callable[[], None]] = None
        self._reconnects = 0

    async def start(self) -> None:
        """Load the persisted override, read physical state, start listening."""
        self._manual_offline = await self._cache.read_manual_offline()
        self._physical = bool(await self._signal.fetch())
        if self._remove_listener is None:
            self._remove_listener = self._signal.add_listener(self._on_physical_change)
        logger.info(
            "Connectivity observer started (connected=%s, manual_offline=%s)",
            self._physical,
            self._manual_offline,
        )

    def close(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def current(self) -> bool:
        return self._physical and not self._manual_offline

    @property
    def physical(self) -> bool:
        return self._physical

    @property
    def manual_offline(self) -> bool:
        return self._manual_offline

    def subscribe(self, callback: Callable[[ConnectivityChanged], None]) -> Subscription:
        return self._events.subscribe(callback, EventType.CONNECTIVITY_CHANGED)  # type: ignore[arg-type]

    async def set_manual_offline(self, enabled: bool) -> None:
        """
        Persist and apply the override; disabling re-checks the physical layer.

        Disabling triggers a reconnect only when it is what brings the observer
        online, and not when a physical change already did so during the fetch.
        """
        enabled = bool(enabled)
        was_online = self.current()
        await self._cache.write_manual_offline(enabled)
        self._manual_offline = enabled

        if not enabled:
            reconnects = self._reconnects
            self._physical = bool(await self._signal.fetch())
            if self._reconnects != reconnects:
                was_online = True

        logger.info("Manual offline mode %s", "enabled" if enabled else "disabled")
        self._publish()

        if not was_online and self.current():
            self._trigger_reconnect()

    def _on_physical_change(self, connected: bool) -> None:
        connected = bool(connected)
        was_connected = self._physical
        if connected == was_connected:
            return

        self._physical = connected
        logger.info("Network %s", "connected" if connected else "disconnected")
        self._publish()

        if connected and not self._manual_offline:
            self._trigger_reconnect()

    def _publish(self) -> None:
        self._events.publish(
            ConnectivityChanged(is_online=self.current(), manual_offline=self._manual_offline)
        )

    def _trigger_reconnect(self) -> None:
        self._reconnects += 1
        if self._on_reconnect is not None:
            self._on_reconnect()
