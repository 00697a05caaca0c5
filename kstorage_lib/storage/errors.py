"""Error types raised by the storage stack.

Every error derives from `StorageError` so callers can catch the whole
family at once. `NotFoundError` also derives from `KeyError`, which keeps
the usual "missing key raises KeyError" convention working for callers
that only know about dict-like stores.
"""
from __future__ import annotations
from typing import Optional


class StorageError(Exception):
    """Base class for all storage failures."""


class NotFoundError(StorageError, KeyError):
    """No stored entry for `key`, or the entry could not be read.

    `cause` keeps the lower-level error (if any) when a higher layer
    collapses a read or decode failure into "not found".
    """

    def __init__(self, key: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(key)
        self.key = key
        self.cause = cause

    def __str__(self) -> str:
        return f"no stored value for key {self.key!r}"


class WriteFailure(StorageError):
    """A write or delete failed at the file-system level."""

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(key, cause)
        self.key = key
        self.cause = cause

    def __str__(self) -> str:
        return f"cannot write key {self.key!r}: {self.cause}"


class EncodeFailure(StorageError, ValueError):
    """A value could not be encoded by the serializer."""


class DecodeFailure(StorageError, ValueError):
    """Stored bytes could not be decoded into the requested value."""


class BlobConversionFailure(StorageError, ValueError):
    """The value-to-bytes conversion produced no bytes."""


class InvalidKeyError(StorageError, ValueError):
    """The key is empty or would resolve outside the storage root."""
