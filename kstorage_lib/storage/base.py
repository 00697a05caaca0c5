"""Raw storage backend interface definitions.

Defines the StorageBackend abstract class for byte-level stores. A backend
maps a string key to a byte blob; typed values are layered on top by
`kstorage_lib.storage.codable_store.CodableStorage`.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from concurrent.futures import Future
from pathlib import Path
from typing import Iterator, Optional

from kstorage_lib.keys import KeyLike
from .dispatcher import Handler, SerialDispatcher


class StorageBackend(ABC):
    """Abstract raw storage backend.

    Synchronous operations may be called from any thread. The `*_async`
    variants run the synchronous operation on `self.dispatcher` and keep
    its exact success/failure semantics.
    """

    def __init__(self, dispatcher: Optional[SerialDispatcher] = None) -> None:
        self.dispatcher = dispatcher or SerialDispatcher()

    @abstractmethod
    def save(self, data: bytes, key: KeyLike) -> Path:
        """Store `data` under `key`, replacing any previous value.

        Raise `WriteFailure` if the value cannot be written.
        """

    @abstractmethod
    def fetch(self, key: KeyLike) -> bytes:
        """Return the bytes stored under `key`. Raise `NotFoundError` otherwise."""

    @abstractmethod
    def delete(self, key: KeyLike) -> Path:
        """Remove `key`. Raise `WriteFailure` if it cannot be removed or is missing."""

    @abstractmethod
    def exists(self, key: KeyLike) -> bool:
        """Return True if `key` has a stored value."""

    @abstractmethod
    def list_keys(self) -> Iterator[str]:
        """Return an iterator over every stored key."""

    def save_async(self, data: bytes, key: KeyLike, handler: Optional[Handler] = None) -> "Future[Path]":
        return self.dispatcher.submit(self.save, data, key, handler=handler)

    def fetch_async(self, key: KeyLike, handler: Optional[Handler] = None) -> "Future[bytes]":
        return self.dispatcher.submit(self.fetch, key, handler=handler)

    def delete_async(self, key: KeyLike, handler: Optional[Handler] = None) -> "Future[Path]":
        return self.dispatcher.submit(self.delete, key, handler=handler)
