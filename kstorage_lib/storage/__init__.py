"""Storage abstraction package for KStorage."""

from .base import StorageBackend
from .codable_store import CodableStorage
from .dispatcher import Result, SerialDispatcher
from .errors import (
    BlobConversionFailure,
    DecodeFailure,
    EncodeFailure,
    InvalidKeyError,
    NotFoundError,
    StorageError,
    WriteFailure,
)
from .file_backend import DiskStorage
from .memory_backend import MemoryStorage
from .serializer import JSONSerializer, YAMLSerializer, get_serializer

__all__ = [
    "StorageBackend",
    "DiskStorage",
    "MemoryStorage",
    "CodableStorage",
    "SerialDispatcher",
    "Result",
    "JSONSerializer",
    "YAMLSerializer",
    "get_serializer",
    "StorageError",
    "NotFoundError",
    "WriteFailure",
    "EncodeFailure",
    "DecodeFailure",
    "BlobConversionFailure",
    "InvalidKeyError",
]
