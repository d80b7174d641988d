"""Local persistent key-value stores."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union
from urllib.parse import quote


class LocalStore(Protocol):
    """Durable string key-value store. All calls are suspension points."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryLocalStore:
    """In-process store; survives nothing but is handy for tests and previews."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("LocalStore values must be strings")
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileLocalStore:
    """
    One file per key under `directory`.

    Writes go to a temporary sibling first and are swapped in with
    os.replace, so a crash mid-write leaves the previous value intact.
    Blocking file I/O runs in a worker thread.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("LocalStore values must be strings")
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._unlink, key)

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("key must be a non-empty string")
        return self._directory / f"{quote(key, safe='')}.value"

    def _read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _unlink(self, key: str) -> None:
        try:
            self._path_for(key).unlink()
        except FileNotFoundError:
            pass
