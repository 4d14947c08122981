"""
Abstract Storage Interface

The ledger is persisted as one blob: the whole AppData aggregate is read
once at startup and written after every successful mutation. A second,
independent slot holds the last browsing filters the user chose to save.

Any backend (local JSON files, in-memory for tests, ...) implements these
two interfaces. Business logic never touches files directly.
"""

from abc import ABC, abstractmethod
from typing import Optional

from daara_ledger.models import AppData, BrowserFilters


class AppDataStorageInterface(ABC):
    """
    Abstract interface for the ledger data slot.
    """

    @abstractmethod
    async def load(self) -> Optional[AppData]:
        """
        Read the stored aggregate.

        Returns:
            The stored AppData, or None if nothing was ever saved

        Raises:
            CorruptDataError: If the stored blob cannot be parsed
            StorageError: If the slot cannot be read
        """
        pass

    @abstractmethod
    async def save(self, data: AppData) -> None:
        """
        Replace the stored aggregate.

        Args:
            data: The full aggregate to persist

        Raises:
            StorageError: If the write fails
        """
        pass


class FilterStorageInterface(ABC):
    """
    Abstract interface for the saved browsing filters slot.

    Filters are only saved on explicit request, never on every change.
    """

    @abstractmethod
    async def load_filters(self) -> Optional[BrowserFilters]:
        """
        Read the saved filters.

        Returns:
            The saved filters, or None if none were saved or they are unreadable
        """
        pass

    @abstractmethod
    async def save_filters(self, filters: BrowserFilters) -> None:
        """
        Replace the saved filters.

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored data exists but cannot be parsed."""
    pass
