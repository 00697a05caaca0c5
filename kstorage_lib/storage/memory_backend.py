"""Simple memory-backed raw storage.

Keeps blobs in a dict keyed by the storage string, with the same error
semantics as `DiskStorage`. Useful for tests and for callers that want an
ephemeral store.
"""
from __future__ import annotations
from pathlib import Path
from threading import RLock
from typing import Dict, Iterator, Optional

from kstorage_lib.keys import KeyLike
from .base import StorageBackend
from .dispatcher import SerialDispatcher
from .errors import NotFoundError, WriteFailure
from .file_backend import validate_key


class MemoryStorage(StorageBackend):
    def __init__(self, root: str | Path = "memory:", dispatcher: Optional[SerialDispatcher] = None):
        super().__init__(dispatcher)
        self.root = Path(root)
        self._lock = RLock()
        self._store: Dict[str, bytes] = {}

    def save(self, data: bytes, key: KeyLike) -> Path:
        raw = validate_key(key)
        with self._lock:
            self._store[raw] = bytes(data)
        return self.root / raw

    def fetch(self, key: KeyLike) -> bytes:
        raw = validate_key(key)
        with self._lock:
            try:
                return self._store[raw]
            except KeyError:
                raise NotFoundError(raw) from None

    def delete(self, key: KeyLike) -> Path:
        raw = validate_key(key)
        with self._lock:
            if raw not in self._store:
                raise WriteFailure(raw, FileNotFoundError(raw))
            del self._store[raw]
        return self.root / raw

    def exists(self, key: KeyLike) -> bool:
        with self._lock:
            return validate_key(key) in self._store

    def list_keys(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._store))
