"""Key namespace for the storage façade.

Well-known keys live in the `DataKey` enum so key literals are defined in
one place. Dynamic identifiers use `FreeFormKey`, the `images/<id>` family
uses `ImageKey` and one-off entries use `TemporaryKey`. Every variant
exposes its storage string through `.key`.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union, runtime_checkable

IMAGE_PREFIX = "images/"
TEMPORARY_PREFIX = "tmp/"


@runtime_checkable
class StorableKey(Protocol):
    @property
    def key(self) -> str: ...


class DataKey(Enum):
    PRIMARY_IMAGE = "primary_image"
    CURRENT_USER = "current_user"
    SETTINGS = "settings"

    @property
    def key(self) -> str:
        return self.value


@dataclass(frozen=True)
class FreeFormKey:
    raw: str

    @property
    def key(self) -> str:
        return self.raw


@dataclass(frozen=True)
class ImageKey:
    """Per-identifier image entry stored under `images/<identifier>`."""

    identifier: str

    @property
    def key(self) -> str:
        return f"{IMAGE_PREFIX}{self.identifier}"


@dataclass(frozen=True)
class TemporaryKey:
    """One-off key outside the stable namespace.

    Entries written under a temporary key are never cleaned up by the store.
    """

    token: str

    @property
    def key(self) -> str:
        return f"{TEMPORARY_PREFIX}{self.token}"

    @classmethod
    def generate(cls) -> "TemporaryKey":
        return cls(uuid.uuid4().hex)


KeyLike = Union[StorableKey, str]


def parse_key(raw: str) -> StorableKey:
    """Map a raw key string back to its symbolic variant.

    Never fails: strings that match nothing become a `FreeFormKey`.
    """
    for member in DataKey:
        if member.value == raw:
            return member
    if raw.startswith(IMAGE_PREFIX) and len(raw) > len(IMAGE_PREFIX):
        return ImageKey(raw[len(IMAGE_PREFIX):])
    if raw.startswith(TEMPORARY_PREFIX) and len(raw) > len(TEMPORARY_PREFIX):
        return TemporaryKey(raw[len(TEMPORARY_PREFIX):])
    return FreeFormKey(raw)


def key_string(key: KeyLike) -> str:
    if isinstance(key, str):
        return key
    return key.key
