"""TCP reachability probe usable as a ConnectivitySignal."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TcpProbeSignal:
    """
    Reports "connected" when a TCP connection to host:port can be opened.

    start() launches a polling task on the running loop; listeners are called
    only when the probed state changes.
    """

    def __init__(
        self,
        host: str = "firestore.googleapis.com",
        port: int = 443,
        *,
        interval_sec: float = 15.0,
        timeout_sec: float = 5.0,
    ) -> None:
        if not host:
            raise ValueError("host must be a non-empty string")
        if interval_sec <= 0 or timeout_sec <= 0:
            raise ValueError("interval_sec and timeout_sec must be positive")
        self._host = host
        self._port = port
        self._interval = interval_sec
        self._timeout = timeout_sec
        self._listeners: list[Callable[[bool], None]] = []
        self._last: Optional[bool] = None
        self._task: Optional[asyncio.Task[None]] = None

    async def fetch(self) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    def add_listener(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._poll())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _poll(self) -> None:
        while True:
            connected = await self.fetch()
            if connected != self._last:
                self._last = connected
                for listener in list(self._listeners):
                    try:
                        listener(connected)
                    except Exception:
                        logger.exception("Connectivity listener failed")
            await asyncio.sleep(self._interval)
