"""
JSON File Storage Implementation

DESIGN DECISION: Each key is stored as its own file under a data
directory, mirroring browser local storage where every key is an
independent blob. This keeps the accounts, the transactions and the
gate flag independently writable.

TRADEOFFS:
- Writes replace the whole blob (fine for a personal ledger)
- No cross-key transactions (the ledger documents this gap)

Writes go to a temporary file first and are moved into place, so a
crash mid-write leaves the previous snapshot intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledgerbook.audit import get_logger
from ledgerbook.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)


_io_retry = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)


class JsonFileKeyValueStore(KeyValueStore):
    """File-per-key store rooted at a data directory."""

    def __init__(self, data_dir: Path, suffix: str = ".json"):
        self._data_dir = Path(data_dir)
        self._suffix = suffix
        self._logger = get_logger(__name__)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """Resolve the file backing a key."""
        if not key or key in (".", "..") or "/" in key or "\\" in key:
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{self._suffix}"

    @_io_retry
    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @_io_retry
    def _write(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            value = self._read(path)
        except OSError as e:
            raise ConnectionError(f"Failed to read {path}: {e}") from e

        if value is None or not value.strip():
            self._logger.debug("storage_get_miss", key=key)
            return None
        self._logger.debug("storage_get_hit", key=key, length=len(value))
        return value

    async def set_item(self, key: str, value: str) -> bool:
        path = self.path_for(key)
        try:
            self._write(path, value)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        self._logger.debug("storage_set", key=key, length=len(value))
        return True
