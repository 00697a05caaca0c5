import os
import threading

import pytest

from kstorage_lib.keys import DataKey, ImageKey
from kstorage_lib.storage.errors import InvalidKeyError, NotFoundError, WriteFailure
from kstorage_lib.storage.file_backend import DiskStorage
from kstorage_lib.storage.interfaces import StorageProtocol


@pytest.fixture
def disk(tmp_path):
    d = DiskStorage(tmp_path / "Storage")
    yield d
    d.dispatcher.shutdown()


def test_save_fetch_delete_and_list_keys(disk):
    path = disk.save(b"\x00\x01payload", "item1")
    assert path == disk.root / "item1"
    assert disk.exists("item1") is True
    assert list(disk.list_keys()) == ["item1"]
    assert disk.fetch("item1") == b"\x00\x01payload"

    assert disk.delete("item1") == path
    assert disk.exists("item1") is False
    with pytest.raises(NotFoundError):
        disk.fetch("item1")


def test_fetch_missing_key_is_not_found(disk):
    with pytest.raises(NotFoundError) as info:
        disk.fetch("never-saved")
    # NotFoundError keeps the KeyError convention
    assert isinstance(info.value, KeyError)
    assert isinstance(info.value.cause, FileNotFoundError)


def test_delete_missing_key_fails(disk):
    with pytest.raises(WriteFailure) as info:
        disk.delete("never-saved")
    assert isinstance(info.value.cause, OSError)


def test_save_replaces_existing_value(disk):
    disk.save(b"first version, longer", "k")
    disk.save(b"second", "k")
    assert disk.fetch("k") == b"second"


def test_nested_keys_create_directories(disk):
    path = disk.save(b"img", ImageKey("a/b/c"))
    assert path == disk.root / "images" / "a" / "b" / "c"
    assert path.parent.is_dir()
    # repeated saves under an existing parent are fine
    disk.save(b"img2", "images/a/b/d")
    assert sorted(disk.list_keys()) == ["images/a/b/c", "images/a/b/d"]


def test_accepts_symbolic_keys(disk):
    disk.save(b"x", DataKey.PRIMARY_IMAGE)
    assert disk.fetch("primary_image") == b"x"


@pytest.mark.parametrize("key", ["", "   ", "../outside", "a/../../b", "/etc/passwd", "./a", "bad\x00key"])
def test_invalid_keys_are_rejected(disk, key):
    with pytest.raises(InvalidKeyError):
        disk.save(b"x", key)
    with pytest.raises(InvalidKeyError):
        disk.fetch(key)


def test_reading_a_directory_is_not_found(disk):
    disk.save(b"x", "dir/file")
    with pytest.raises(NotFoundError):
        disk.fetch("dir")


def test_save_into_unwritable_location_is_write_failure(disk):
    disk.save(b"x", "blocker")
    # "blocker" is a file, so it cannot become a parent directory
    with pytest.raises(WriteFailure):
        disk.save(b"y", "blocker/child")


def test_no_temp_files_left_behind(disk):
    for i in range(5):
        disk.save(b"v%d" % i, "k")
    assert os.listdir(disk.root) == ["k"]


def test_key_for_path_inverts_path_for(disk):
    path = disk.save(b"x", "images/abc")
    assert disk.key_for_path(path) == "images/abc"
    assert disk.key_for_path("images/abc") == "images/abc"
    with pytest.raises(InvalidKeyError):
        disk.key_for_path(disk.root.parent / "elsewhere")


def test_list_keys_on_missing_root(tmp_path):
    d = DiskStorage(tmp_path / "nope")
    assert list(d.list_keys()) == []


def test_async_round_trip(disk):
    disk.save_async(b"async bytes", "k").result(timeout=5)
    assert disk.fetch_async("k").result(timeout=5) == b"async bytes"
    disk.delete_async("k").result(timeout=5)
    with pytest.raises(NotFoundError):
        disk.fetch_async("k").result(timeout=5)


def test_async_handler_gets_same_failure_as_sync(disk):
    results = []
    done = threading.Event()

    def handler(result):
        results.append(result)
        done.set()

    disk.delete_async("never-saved", handler=handler)
    assert done.wait(5)
    assert isinstance(results[0].error, WriteFailure)


def test_disk_storage_satisfies_protocol(disk):
    assert isinstance(disk, StorageProtocol)
