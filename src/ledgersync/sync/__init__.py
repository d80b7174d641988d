"""Public sync exports for ledgersync."""

from __future__ import annotations

from .conflict import ResolvedWrite, merge_collections, remote_is_newer, resolve_write
from .processor import SyncProcessor
from .reconciler import Reconciler

__all__ = [
    "SyncProcessor",
    "Reconciler",
    "ResolvedWrite",
    "resolve_write",
    "remote_is_newer",
    "merge_collections",
]
