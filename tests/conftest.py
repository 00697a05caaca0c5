"""Pytest configuration helpers for test collection.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally.
"""
import logging
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def data_storage(tmp_path):
    from kstorage_lib.data_storage import DataStorage

    storage = DataStorage(tmp_path / "Storage")
    yield storage
    storage.close()


@pytest.fixture(autouse=True)
def restore_root_logger():
    # configure_logging replaces root handlers; keep tests isolated from that
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
