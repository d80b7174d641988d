"""Public connectivity exports for ledgersync."""

from __future__ import annotations

from .observer import ConnectivityObserver, ConnectivitySignal
from .probe import TcpProbeSignal

__all__ = ["ConnectivitySignal", "ConnectivityObserver", "TcpProbeSignal"]
