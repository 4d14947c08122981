"""
In-Memory Storage

Same contract as the file backend, kept in process memory. Used by tests
and for throwaway sessions. Stored values are serialized on save so that
later changes to the caller's objects cannot leak into the stored copy.
"""

from typing import Optional

from daara_ledger.models import AppData, BrowserFilters
from daara_ledger.services.storage.interface import (
    AppDataStorageInterface,
    FilterStorageInterface,
)


class InMemoryStorage(AppDataStorageInterface, FilterStorageInterface):
    """Keeps the ledger blob and the filters blob in memory."""

    def __init__(self, data: Optional[AppData] = None):
        self._data_blob: Optional[str] = data.model_dump_json() if data else None
        self._filters_blob: Optional[str] = None

    async def load(self) -> Optional[AppData]:
        if self._data_blob is None:
            return None
        return AppData.model_validate_json(self._data_blob)

    async def save(self, data: AppData) -> None:
        self._data_blob = data.model_dump_json()

    async def load_filters(self) -> Optional[BrowserFilters]:
        if self._filters_blob is None:
            return None
        return BrowserFilters.model_validate_json(self._filters_blob)

    async def save_filters(self, filters: BrowserFilters) -> None:
        self._filters_blob = filters.model_dump_json()
