"""Typed storage on top of a raw backend.

`CodableStorage` turns values into bytes with a `Serializer` before handing
them to the raw store, and decodes bytes back into values on fetch. Typed
values may be pydantic models, dataclasses or plain JSON-compatible
builtins; pass the type as `model` when fetching.

Usage:

    disk = DiskStorage(tmp_dir)
    storage = CodableStorage(disk)
    storage.save(Timeline(tweets=["Hello", "World"]), "timeline")
    cached = storage.fetch("timeline", Timeline)
"""
from __future__ import annotations
import dataclasses
import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from kstorage_lib.keys import KeyLike, key_string
from .base import StorageBackend
from .dispatcher import Handler
from .errors import DecodeFailure, EncodeFailure
from .serializer import JSONSerializer, Serializer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_plain(value: Any) -> Any:
    """Project a typed value onto serializer-friendly builtins."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return TypeAdapter(type(value)).dump_python(value, mode="json")
    return value


def from_plain(data: Any, model: Optional[Type[T]]) -> T:
    """Build `model` from decoded builtins, raising `DecodeFailure` on mismatch.

    Dataclasses, generics such as `List[int]` and builtins go through a
    pydantic `TypeAdapter`, so nested dataclasses are rebuilt as well.
    """
    if model is None:
        return data
    name = getattr(model, "__name__", repr(model))
    try:
        if isinstance(model, type) and issubclass(model, BaseModel):
            return model.model_validate(data)
        return TypeAdapter(model).validate_python(data)
    except (ValidationError, TypeError, ValueError) as exc:
        raise DecodeFailure(f"cannot decode {name}: {exc}") from exc


class CodableStorage:
    def __init__(self, storage: StorageBackend, serializer: Optional[Serializer] = None) -> None:
        self.storage = storage
        self.serializer = serializer or JSONSerializer()

    def fetch(self, key: KeyLike, model: Optional[Type[T]] = None) -> T:
        data = self.storage.fetch(key)
        try:
            return from_plain(self.serializer.load(data), model)
        except DecodeFailure:
            logger.warning("Stored value for %s could not be decoded", key_string(key))
            raise

    def save(self, value: Any, key: KeyLike) -> Path:
        # Encoding happens before the raw store is touched.
        try:
            data = self.serializer.dump(to_plain(value))
        except EncodeFailure:
            logger.warning("Value for %s could not be encoded", key_string(key))
            raise
        return self.storage.save(data, key)

    def delete(self, key: KeyLike) -> None:
        self.storage.delete(key)

    def fetch_async(
        self, key: KeyLike, model: Optional[Type[T]] = None, handler: Optional[Handler] = None
    ) -> "Future[T]":
        return self.storage.dispatcher.submit(self.fetch, key, model, handler=handler)

    def save_async(self, value: Any, key: KeyLike, handler: Optional[Handler] = None) -> "Future[Path]":
        return self.storage.dispatcher.submit(self.save, value, key, handler=handler)

    def delete_async(self, key: KeyLike, handler: Optional[Handler] = None) -> "Future[None]":
        return self.storage.dispatcher.submit(self.delete, key, handler=handler)
