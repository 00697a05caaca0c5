from concurrent.futures import Future
from pathlib import Path
from typing import Iterator, Optional, Protocol, runtime_checkable

from kstorage_lib.keys import KeyLike
from .dispatcher import Handler


@runtime_checkable
class StorageProtocol(Protocol):
    """Raw storage protocol mirroring `kstorage_lib.storage.StorageBackend`.

    Implementations should follow the semantics documented on the abstract
    base class in `kstorage_lib.storage.base` (NotFoundError for missing
    keys, WriteFailure for failed writes and deletes, etc.).
    """

    def save(self, data: bytes, key: KeyLike) -> Path: ...

    def fetch(self, key: KeyLike) -> bytes: ...

    def delete(self, key: KeyLike) -> Path: ...

    def exists(self, key: KeyLike) -> bool: ...

    def list_keys(self) -> Iterator[str]: ...

    def save_async(self, data: bytes, key: KeyLike, handler: Optional[Handler] = None) -> Future: ...

    def fetch_async(self, key: KeyLike, handler: Optional[Handler] = None) -> Future: ...

    def delete_async(self, key: KeyLike, handler: Optional[Handler] = None) -> Future: ...
