"""File-backed raw storage.

Each key is stored as the file `<root>/<key>`; keys containing `/` create
subdirectories. Writes go to a temporary file in the target directory that
is then renamed over the destination, so readers see either the complete
old content or the complete new content.
"""
from __future__ import annotations
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional

from kstorage_lib.keys import KeyLike, key_string
from .base import StorageBackend
from .dispatcher import SerialDispatcher
from .errors import InvalidKeyError, NotFoundError, WriteFailure

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def validate_key(key: KeyLike) -> str:
    """Return the storage string for `key` or raise `InvalidKeyError`."""
    raw = key_string(key)
    if not raw or not raw.strip():
        raise InvalidKeyError("storage key must not be empty")
    if "\x00" in raw:
        raise InvalidKeyError(f"storage key contains NUL: {raw!r}")
    path = PurePosixPath(raw)
    if path.is_absolute():
        raise InvalidKeyError(f"storage key must be relative: {raw!r}")
    if any(part in ("..", ".") for part in raw.split("/")):
        raise InvalidKeyError(f"storage key must not contain '.' or '..': {raw!r}")
    return raw


class DiskStorage(StorageBackend):
    def __init__(self, path: str | Path, dispatcher: Optional[SerialDispatcher] = None) -> None:
        super().__init__(dispatcher)
        self.root = Path(path)

    def path_for(self, key: KeyLike) -> Path:
        return self.root / validate_key(key)

    def key_for_path(self, path: str | Path) -> str:
        """Inverse of `path_for`: the key whose entry lives at `path`."""
        target = Path(path)
        if not target.is_absolute():
            target = self.root / target
        try:
            rel = target.relative_to(self.root)
        except ValueError:
            raise InvalidKeyError(f"{target} is outside the storage root {self.root}") from None
        return validate_key(rel.as_posix())

    def _create_folders(self, path: Path) -> None:
        # exist_ok makes repeated saves under the same parent a no-op
        path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, data: bytes, key: KeyLike) -> Path:
        path = self.path_for(key)
        tmp_name: Optional[str] = None
        try:
            self._create_folders(path)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=TMP_SUFFIX)
            with os.fdopen(fd, "wb") as f:
                f.write(bytes(data))
                f.flush()
                os.fsync(f.fileno())
            Path(tmp_name).replace(path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.warning("DiskStorage failed to write %s: %s", path, exc)
            raise WriteFailure(key_string(key), exc) from exc
        logger.debug("DiskStorage saved %s (%d bytes)", path, len(data))
        return path

    def fetch(self, key: KeyLike) -> bytes:
        path = self.path_for(key)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except FileNotFoundError as exc:
            logger.debug("DiskStorage has no entry at %s", path)
            raise NotFoundError(key_string(key), exc) from exc
        except OSError as exc:
            # Every read failure surfaces as "not found" at this layer.
            logger.warning("DiskStorage failed to read %s: %s", path, exc)
            raise NotFoundError(key_string(key), exc) from exc
        logger.debug("DiskStorage loaded %s (%d bytes)", path, len(data))
        return data

    def delete(self, key: KeyLike) -> Path:
        path = self.path_for(key)
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("DiskStorage failed to delete %s: %s", path, exc)
            raise WriteFailure(key_string(key), exc) from exc
        return path

    def exists(self, key: KeyLike) -> bool:
        return self.path_for(key).is_file()

    def list_keys(self) -> Iterator[str]:
        if not self.root.is_dir():
            return iter(())
        keys = []
        for p in self.root.rglob("*"):
            if not p.is_file():
                continue
            if p.name.startswith(".") and p.name.endswith(TMP_SUFFIX):
                continue
            keys.append(p.relative_to(self.root).as_posix())
        return iter(sorted(keys))
