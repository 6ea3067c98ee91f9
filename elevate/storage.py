"""Durable key-value storage for Elevate.

The tracker only needs two primitives from its storage collaborator:
``read(key) -> bytes | None`` and ``write(key, data)``. Each key is one
self-contained serialized value; nothing is transactional across keys.
Failures are reported as StorageError and never retried here.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from elevate.fileio import atomic_write


_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(Exception):
    """Raised when a key cannot be read from or written to storage."""

    def __init__(self, key: str, cause: Exception | None = None):
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"storage failure for key {key!r}{detail}")


class KeyValueStore(Protocol):
    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, data: bytes) -> None: ...


class FileStore:
    """One file per key under a workspace directory, written atomically."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / key

    def read(self, key: str) -> bytes | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(key, e) from e

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            atomic_write(path, data, suffix=path.suffix or ".tmp")
        except OSError as e:
            raise StorageError(key, e) from e


class MemoryStore:
    """In-process store, used by tests and embedding collaborators."""

    def __init__(self, data: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(data or {})

    def read(self, key: str) -> bytes | None:
        return self.data.get(key)

    def write(self, key: str, data: bytes) -> None:
        self.data[key] = bytes(data)
