"""
Local File Storage

The default backend: one UTF-8 file per key in a data directory.
Writes go to a temporary file first and are moved into place, so a
crash mid-write leaves the previous value intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

from budget_tracker.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    StorageError,
    StorageUnavailableError,
)


_SUFFIX = ".json"


class LocalFileStore(KeyValueStore):
    """
    Key-value store backed by a directory on local disk.

    Args:
        data_dir: Directory holding one file per key (created on demand)
        quota_bytes: Maximum total size of stored values; None for no limit
    """

    name = "local"

    def __init__(self, data_dir: Path, quota_bytes: Optional[int] = None):
        self._data_dir = Path(data_dir)
        self._quota_bytes = quota_bytes

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        return self._data_dir / f"{quote(key, safe='')}{_SUFFIX}"

    def _ensure_dir(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Data directory is not usable: {self._data_dir} ({e})"
            )

    def _used_bytes(self, excluding: Path) -> int:
        total = 0
        for path in self._data_dir.glob(f"*{_SUFFIX}"):
            if path != excluding:
                total += path.stat().st_size
        return total

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}")

    def set_item(self, key: str, value: str) -> None:
        self._ensure_dir()
        path = self._path_for(key)
        encoded = value.encode("utf-8")

        if self._quota_bytes is not None:
            used = self._used_bytes(excluding=path)
            if used + len(encoded) > self._quota_bytes:
                raise QuotaExceededError(
                    f"Writing '{key}' ({len(encoded)} bytes) would exceed the "
                    f"{self._quota_bytes} byte quota ({used} bytes used)"
                )

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=".tmp-")
            with os.fdopen(fd, "wb") as f:
                f.write(encoded)
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    def remove_item(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove '{key}': {e}")

    def keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(
            unquote(path.name[: -len(_SUFFIX)])
            for path in self._data_dir.glob(f"*{_SUFFIX}")
        )
