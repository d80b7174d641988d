"""Public storage exports for ledgersync."""

from __future__ import annotations

from .local_cache import LocalCache
from .local_store import FileLocalStore, LocalStore, MemoryLocalStore

__all__ = ["LocalStore", "MemoryLocalStore", "FileLocalStore", "LocalCache"]
