"""
Local JSON File Storage

Keeps the ledger in two JSON files inside one directory:
- the data file: the whole AppData aggregate
- the filters file: the last saved browsing filters

Writes go to a temporary file next to the target and are moved into place
with os.replace, so a crash mid-write never leaves a half-written ledger.
Transient OS errors on write (a file briefly locked by a sync client or
antivirus) are retried a few times before giving up.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from daara_ledger.config import get_settings
from daara_ledger.models import AppData, BrowserFilters
from daara_ledger.services.storage.interface import (
    AppDataStorageInterface,
    CorruptDataError,
    FilterStorageInterface,
    StorageError,
)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonFileStorage(AppDataStorageInterface, FilterStorageInterface):
    """
    File-backed storage for the ledger and the saved filters.
    """

    def __init__(
        self,
        data_path: Optional[Path] = None,
        filters_path: Optional[Path] = None,
        write_attempts: Optional[int] = None,
    ):
        """
        Initialize storage.

        Args:
            data_path: Ledger file. Defaults to the configured location.
            filters_path: Filters file. Defaults to the configured location.
            write_attempts: Attempts per write. Defaults to the configured value.
        """
        settings = get_settings().storage
        self._data_path = Path(data_path) if data_path else settings.data_path
        self._filters_path = Path(filters_path) if filters_path else settings.filters_path
        self._write_attempts = write_attempts or settings.write_attempts

    @property
    def data_path(self) -> Path:
        return self._data_path

    @property
    def filters_path(self) -> Path:
        return self._filters_path

    def _write(self, path: Path, text: str) -> None:
        writer = retry(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )(_write_atomic)
        try:
            writer(path, text)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    # -------------------------------------------------------------------------
    # Ledger data
    # -------------------------------------------------------------------------

    async def load(self) -> Optional[AppData]:
        """Read the ledger file. None if it does not exist yet."""
        if not self._data_path.exists():
            return None
        try:
            raw = self._data_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._data_path}: {e}")

        if not raw.strip():
            return None
        try:
            return AppData.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(f"Ledger file {self._data_path} is not valid: {e}")

    async def save(self, data: AppData) -> None:
        """Replace the ledger file with the given aggregate."""
        self._write(self._data_path, data.model_dump_json(indent=2))

    # -------------------------------------------------------------------------
    # Browsing filters
    # -------------------------------------------------------------------------

    async def load_filters(self) -> Optional[BrowserFilters]:
        """Read the saved filters. Unreadable or malformed files count as none."""
        if not self._filters_path.exists():
            return None
        try:
            raw = json.loads(self._filters_path.read_text(encoding="utf-8"))
            return BrowserFilters.model_validate(raw)
        except (OSError, ValueError):
            return None

    async def save_filters(self, filters: BrowserFilters) -> None:
        self._write(self._filters_path, filters.model_dump_json())
