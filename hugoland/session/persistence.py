"""
Persistence backends - Asynchronous key-value storage for snapshots.

A backend stores opaque bytes under a single string key. Last write wins;
there is no ordering guarantee relative to in-flight mutations.
"""

from __future__ import annotations
import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class PersistenceBackend(Protocol):
    async def load(self, key: str) -> bytes | None: ...

    async def save(self, key: str, data: bytes) -> None: ...


class MemoryBackend:
    """In-process backend, used by tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(initial or {})
        self.save_count = 0

    async def load(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def save(self, key: str, data: bytes) -> None:
        self.data[key] = data
        self.save_count += 1


class FileBackend:
    """
    One JSON file per key inside a directory.

    Writes go to a temporary file that then replaces the target, so a
    crash leaves either the old or the new snapshot on disk.
    """

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".hugoland"
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def load(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def save(self, key: str, data: bytes) -> None:
        await asyncio.to_thread(self._write, self.path_for(key), data)

    def _read(self, path: Path) -> bytes | None:
        if not path.exists():
            return None
        return path.read_bytes()

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name, dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
        logger.debug("Wrote %d bytes to %s", len(data), path)
