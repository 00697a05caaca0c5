"""Storage façade used by the rest of the application.

`DataStorage` owns one `CodableStorage` rooted at the storage directory and
a single serial dispatcher for background work. Typed values go through
the serializer; blobs (image data) bypass it and are written as raw bytes.
The application builds one instance in its composition root, see
`kstorage_lib.bootstrap`.
"""
from __future__ import annotations
import logging
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Protocol, Type, TypeVar

from kstorage_lib.keys import DataKey, KeyLike, TemporaryKey, key_string
from kstorage_lib.storage.codable_store import CodableStorage
from kstorage_lib.storage.dispatcher import DEFAULT_QUEUE_NAME, Handler, SerialDispatcher
from kstorage_lib.storage.errors import BlobConversionFailure, NotFoundError, StorageError
from kstorage_lib.storage.file_backend import DiskStorage
from kstorage_lib.storage.serializer import Serializer

logger = logging.getLogger(__name__)

T = TypeVar("T")

BlobConverter = Callable[[Any], Optional[bytes]]


class AuthorizationStatus(Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


class ImageExporter(Protocol):
    """Boundary to an external photo library.

    `request_authorization` may answer asynchronously by calling `callback`
    with the granted status.
    """

    def authorization_status(self) -> AuthorizationStatus: ...

    def request_authorization(self, callback: Callable[[AuthorizationStatus], None]) -> None: ...

    def export(self, value: Any) -> None: ...


def default_blob_converter(value: Any) -> Optional[bytes]:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return None


class DataStorage:
    def __init__(
        self,
        root: str | Path,
        serializer: Optional[Serializer] = None,
        exporter: Optional[ImageExporter] = None,
        dispatcher: Optional[SerialDispatcher] = None,
    ) -> None:
        self.root = Path(root)
        self.dispatcher = dispatcher or SerialDispatcher(DEFAULT_QUEUE_NAME)
        self.exporter = exporter
        self._disk = DiskStorage(self.root, dispatcher=self.dispatcher)
        self._storage = CodableStorage(self._disk, serializer)
        self.ensure_storage_directory()

    def ensure_storage_directory(self) -> bool:
        """Create the storage root if it is missing. Safe to call repeatedly."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.exception("Failed to create storage directory %s", self.root)
            return False
        return True

    # Typed values

    def retrieve(self, key: KeyLike, model: Optional[Type[T]] = None, strict: bool = False) -> T:
        """Fetch and decode the value stored under `key`.

        Any storage error is reported as `NotFoundError`, with the original
        error available as `cause`. Pass `strict=True` to get decode
        failures unchanged instead.
        """
        try:
            return self._storage.fetch(key, model)
        except NotFoundError:
            raise
        except StorageError as exc:
            if strict:
                raise
            logger.debug("Treating unreadable value for %s as missing: %s", key_string(key), exc)
            raise NotFoundError(key_string(key), exc) from exc

    def save(self, value: Any, key: KeyLike) -> Path:
        return self._storage.save(value, key)

    def delete(self, key: KeyLike) -> None:
        self._storage.delete(key)

    # Blobs

    def save_blob(
        self,
        value: Any,
        key: Optional[KeyLike] = None,
        converter: Optional[BlobConverter] = None,
        export: bool = False,
        temporary: bool = False,
    ) -> Path:
        """Write `value` as raw bytes and return the path of the stored entry.

        `converter` turns `value` into bytes (defaults to accepting
        bytes-like values). With `temporary=True` a fresh one-off key is used
        and `key` is ignored. With `export=True` the value is also handed to
        the exporter after the write succeeds; export problems are logged
        and never raised.
        """
        if temporary:
            key = TemporaryKey.generate()
        elif key is None:
            key = DataKey.PRIMARY_IMAGE
        convert = converter or default_blob_converter
        try:
            data = convert(value)
        except (TypeError, ValueError) as exc:
            raise BlobConversionFailure(f"cannot convert {type(value).__name__} to bytes: {exc}") from exc
        if not data:
            raise BlobConversionFailure(f"conversion of {type(value).__name__} produced no bytes")

        path = self._disk.save(data, key)
        if export:
            self._schedule_export(value)
        return path

    def fetch_blob(self, key: KeyLike) -> Optional[bytes]:
        """Return the stored bytes, or None if nothing was stored under `key`."""
        try:
            return self._disk.fetch(key)
        except NotFoundError:
            return None

    def fetch_blob_at(self, path: str | Path) -> Optional[bytes]:
        """Like `fetch_blob`, addressed by a path previously returned by `save_blob`."""
        return self.fetch_blob(self._disk.key_for_path(path))

    def exists(self, key: KeyLike) -> bool:
        return self._disk.exists(key)

    def keys(self) -> Iterator[str]:
        return self._disk.list_keys()

    # Export

    def _schedule_export(self, value: Any) -> None:
        if self.exporter is None:
            logger.debug("Export requested but no exporter is configured")
            return
        try:
            self.dispatcher.submit(self._export, value)
        except RuntimeError:
            logger.warning("Dispatcher closed; skipping export")

    def _export(self, value: Any) -> None:
        exporter = self.exporter
        if exporter is None:
            return
        try:
            if exporter.authorization_status() is AuthorizationStatus.AUTHORIZED:
                exporter.export(value)
                return

            def on_status(status: AuthorizationStatus) -> None:
                if status is not AuthorizationStatus.AUTHORIZED:
                    logger.info("Export skipped; photo library access is %s", status.value)
                    return
                try:
                    exporter.export(value)
                except Exception:
                    logger.exception("Image export failed")

            exporter.request_authorization(on_status)
        except Exception:
            logger.exception("Image export failed")

    # Background variants

    def submit(self, fn: Callable[..., T], *args: Any, handler: Optional[Handler] = None, **kwargs: Any) -> "Future[T]":
        return self.dispatcher.submit(fn, *args, handler=handler, **kwargs)

    def retrieve_async(
        self,
        key: KeyLike,
        model: Optional[Type[T]] = None,
        strict: bool = False,
        handler: Optional[Handler] = None,
    ) -> "Future[T]":
        return self.submit(self.retrieve, key, model, strict, handler=handler)

    def save_async(self, value: Any, key: KeyLike, handler: Optional[Handler] = None) -> "Future[Path]":
        return self.submit(self.save, value, key, handler=handler)

    def delete_async(self, key: KeyLike, handler: Optional[Handler] = None) -> "Future[None]":
        return self.submit(self.delete, key, handler=handler)

    def save_blob_async(
        self, value: Any, key: Optional[KeyLike] = None, handler: Optional[Handler] = None, **options: Any
    ) -> "Future[Path]":
        return self.submit(self.save_blob, value, key, handler=handler, **options)

    def fetch_blob_async(self, key: KeyLike, handler: Optional[Handler] = None) -> "Future[Optional[bytes]]":
        return self.submit(self.fetch_blob, key, handler=handler)

    def close(self) -> None:
        """Run queued work to completion and stop the background worker."""
        self.dispatcher.shutdown(wait=True)

    def __enter__(self) -> "DataStorage":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
