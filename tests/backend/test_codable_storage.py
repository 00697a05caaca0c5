from dataclasses import dataclass, field
from typing import List

import pytest
from pydantic import BaseModel

from kstorage_lib.storage.codable_store import CodableStorage
from kstorage_lib.storage.errors import DecodeFailure, EncodeFailure, NotFoundError
from kstorage_lib.storage.file_backend import DiskStorage
from kstorage_lib.storage.serializer import YAMLSerializer


class Timeline(BaseModel):
    tweets: List[str]


@dataclass
class Counter:
    count: int
    labels: List[str] = field(default_factory=list)


@pytest.fixture
def disk(tmp_path):
    d = DiskStorage(tmp_path / "Storage")
    yield d
    d.dispatcher.shutdown()


def test_pydantic_round_trip(disk):
    storage = CodableStorage(disk)
    timeline = Timeline(tweets=["Hello", "World", "!!!"])
    storage.save(timeline, "timeline")
    assert storage.fetch("timeline", Timeline) == timeline


def test_dataclass_round_trip(disk):
    storage = CodableStorage(disk)
    storage.save(Counter(3, ["a"]), "state")
    assert storage.fetch("state", Counter) == Counter(3, ["a"])


def test_plain_values_without_model(disk):
    storage = CodableStorage(disk)
    storage.save({"count": 3}, "state")
    assert storage.fetch("state") == {"count": 3}


def test_yaml_codec(disk):
    storage = CodableStorage(disk, YAMLSerializer())
    storage.save(Counter(1), "state.yml")
    assert b"count: 1" in disk.fetch("state.yml")
    assert storage.fetch("state.yml", Counter) == Counter(1)


def test_missing_key_propagates_not_found(disk):
    with pytest.raises(NotFoundError):
        CodableStorage(disk).fetch("missing", Counter)


def test_malformed_bytes_raise_decode_failure(disk):
    disk.save(b"\x89PNG not json", "state")
    with pytest.raises(DecodeFailure):
        CodableStorage(disk).fetch("state")


def test_wrong_shape_raises_decode_failure(disk):
    storage = CodableStorage(disk)
    storage.save(["not", "a", "mapping"], "state")
    with pytest.raises(DecodeFailure):
        storage.fetch("state", Counter)
    with pytest.raises(DecodeFailure):
        storage.fetch("state", Timeline)
    with pytest.raises(DecodeFailure):
        storage.fetch("state", dict)


def test_mixed_codec_read_fails_cleanly(disk):
    CodableStorage(disk, YAMLSerializer()).save({"a": 1}, "k")
    with pytest.raises(DecodeFailure):
        CodableStorage(disk).fetch("k")


def test_encode_failure_leaves_disk_untouched(disk):
    storage = CodableStorage(disk)
    storage.save({"v": 1}, "k")
    with pytest.raises(EncodeFailure):
        storage.save({"v": object()}, "k")
    with pytest.raises(EncodeFailure):
        storage.save({"v": object()}, "fresh")
    assert storage.fetch("k") == {"v": 1}
    assert not disk.exists("fresh")


def test_delete_delegates(disk):
    storage = CodableStorage(disk)
    storage.save(1, "k")
    storage.delete("k")
    assert not disk.exists("k")


def test_async_variants(disk):
    storage = CodableStorage(disk)
    storage.save_async(Counter(7), "c").result(timeout=5)
    assert storage.fetch_async("c", Counter).result(timeout=5) == Counter(7)
    storage.delete_async("c").result(timeout=5)
    with pytest.raises(NotFoundError):
        storage.fetch_async("c").result(timeout=5)


@dataclass
class Inner:
    x: int


@dataclass
class Outer:
    inner: Inner
    tags: List[str] = field(default_factory=list)


@dataclass
class Positive:
    value: int

    def __post_init__(self):
        if self.value <= 0:
            raise ValueError("value must be positive")


def test_nested_dataclass_round_trip(disk):
    storage = CodableStorage(disk)
    storage.save(Outer(Inner(1), ["a"]), "k")
    assert storage.fetch("k", Outer) == Outer(Inner(1), ["a"])


def test_nested_dataclass_round_trip_yaml(disk):
    storage = CodableStorage(disk, YAMLSerializer())
    storage.save(Outer(Inner(2)), "k")
    assert storage.fetch("k", Outer) == Outer(Inner(2))


def test_generic_model_mismatch_is_decode_failure(disk):
    storage = CodableStorage(disk)
    storage.save({"a": 1}, "k")
    with pytest.raises(DecodeFailure):
        storage.fetch("k", List[int])
    storage.save([1, 2], "ints")
    assert storage.fetch("ints", List[int]) == [1, 2]


def test_dataclass_post_init_error_is_decode_failure(disk):
    storage = CodableStorage(disk)
    storage.save({"value": -1}, "k")
    with pytest.raises(DecodeFailure):
        storage.fetch("k", Positive)
