"""Composition root for the storage façade.

The application builds one `DataStorage` here and passes it to the code
that needs storage. `get_data_storage` offers the same instance to callers
that have no way to receive it explicitly; tests build isolated containers
with `build_container` instead.
"""
from __future__ import annotations
import logging
import threading
from typing import Optional

from kstorage_lib.config import StorageSettings, load_settings
from kstorage_lib.data_storage import DataStorage, ImageExporter
from kstorage_lib.services.container import ServiceContainer
from kstorage_lib.storage.dispatcher import SerialDispatcher
from kstorage_lib.storage.serializer import get_serializer

logger = logging.getLogger(__name__)

SETTINGS = "settings"
DATA_STORAGE = "data_storage"

_container: Optional[ServiceContainer] = None
_container_lock = threading.Lock()


def create_data_storage(settings: StorageSettings, exporter: Optional[ImageExporter] = None) -> DataStorage:
    logger.info("Opening storage at %s", settings.storage_root)
    return DataStorage(
        settings.storage_root,
        serializer=get_serializer(settings.serializer),
        exporter=exporter,
        dispatcher=SerialDispatcher(settings.queue_name),
    )


def build_container(
    settings: Optional[StorageSettings] = None,
    exporter: Optional[ImageExporter] = None,
) -> ServiceContainer:
    """Register settings and a lazily built `DataStorage` in a new container."""
    container = ServiceContainer()
    cfg = settings or load_settings()
    container.register_singleton(SETTINGS, cfg)
    container.register_factory(DATA_STORAGE, lambda: create_data_storage(cfg, exporter))
    return container


def get_data_storage() -> DataStorage:
    """Return the process-wide façade, creating it on first access."""
    global _container
    with _container_lock:
        if _container is None:
            _container = build_container()
        container = _container
    return container.get(DATA_STORAGE)


def reset_data_storage() -> None:
    """Close and forget the process-wide façade."""
    global _container
    with _container_lock:
        container, _container = _container, None
    if container is not None and container.resolved(DATA_STORAGE):
        container.get(DATA_STORAGE).close()
