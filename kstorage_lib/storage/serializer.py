from typing import Any, Protocol
import json
import yaml

from .errors import DecodeFailure, EncodeFailure


class Serializer(Protocol):
    """Serialize/deserialize Python values to and from bytes.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    `dump` raises `EncodeFailure` and `load` raises `DecodeFailure`; neither
    may fall back to a default value.
    """

    name: str

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class JSONSerializer:
    """Default serializer using JSON (text). Caller must ensure values are JSON-serializable."""

    name = "json"

    def dump(self, value: Any) -> bytes:
        try:
            return json.dumps(value, sort_keys=True, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodeFailure(f"cannot encode {type(value).__name__} as JSON: {exc}") from exc

    def load(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeFailure(f"invalid JSON payload: {exc}") from exc


class YAMLSerializer:
    """Serializer using YAML (text). Caller must ensure values are YAML-serializable."""

    name = "yaml"

    def dump(self, value: Any) -> bytes:
        try:
            return yaml.safe_dump(value, sort_keys=False, allow_unicode=True, explicit_start=True).encode("utf-8")
        except yaml.YAMLError as exc:
            raise EncodeFailure(f"cannot encode {type(value).__name__} as YAML: {exc}") from exc

    def load(self, data: bytes) -> Any:
        # Plain text parses as a YAML scalar, so the document marker written
        # by `dump` is required.
        if not data.strip():
            raise DecodeFailure("empty YAML payload")
        if not data.lstrip().startswith(b"---"):
            raise DecodeFailure("YAML payload has no document start marker")
        try:
            return yaml.safe_load(data.decode("utf-8"))
        except (UnicodeDecodeError, yaml.YAMLError) as exc:
            raise DecodeFailure(f"invalid YAML payload: {exc}") from exc


_SERIALIZERS = {
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}


def get_serializer(name: str) -> Serializer:
    try:
        return _SERIALIZERS[name.lower()]()
    except KeyError:
        raise ValueError(f"unknown serializer {name!r}; expected one of {sorted(_SERIALIZERS)}") from None
