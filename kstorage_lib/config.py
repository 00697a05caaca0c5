"""Settings for the storage façade.

Settings come from an optional YAML file (`kstorage.yml` in the working
directory, or the path in `KSTORAGE_CONFIG`). A missing file yields the
defaults; a malformed one raises `ValueError`.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("kstorage.yml")
CONFIG_ENV = "KSTORAGE_CONFIG"
DOCUMENTS_ENV = "KSTORAGE_DOCUMENTS_DIR"


def default_documents_dir() -> Path:
    return Path.home() / "Documents"


class StorageSettings(BaseModel):
    documents_dir: Path = default_documents_dir()
    # Change this value to move the default storage folder
    storage_folder: str = "Storage"
    serializer: Literal["json", "yaml"] = "json"
    log_level: str = "WARNING"
    queue_name: str = "DiskCache.Queue"

    @property
    def storage_root(self) -> Path:
        return Path(self.documents_dir).expanduser() / self.storage_folder


def config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path)
    env = os.environ.get(CONFIG_ENV)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_settings(path: Optional[Path] = None) -> StorageSettings:
    cfg_path = config_path(path)
    data: Any = {}
    if cfg_path.exists():
        try:
            with cfg_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"invalid settings file {cfg_path}: parse error") from e
        if not isinstance(data, dict):
            raise ValueError(f"invalid settings file {cfg_path}: expected mapping")
    else:
        logger.debug("No settings file at %s; using defaults", cfg_path)

    documents = os.environ.get(DOCUMENTS_ENV)
    if documents:
        data["documents_dir"] = documents
    try:
        return StorageSettings(**data)
    except ValidationError as e:
        raise ValueError(f"invalid settings file {cfg_path}: {e}") from e
