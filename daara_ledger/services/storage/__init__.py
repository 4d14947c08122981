"""
Storage Services Package

Provides abstract interfaces and concrete implementations for persisting
the ledger. Local JSON files are the default backend; the in-memory backend
serves tests and throwaway sessions.
"""

from daara_ledger.services.storage.interface import (
    AppDataStorageInterface,
    CorruptDataError,
    FilterStorageInterface,
    StorageError,
)
from daara_ledger.services.storage.json_file import JsonFileStorage
from daara_ledger.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "AppDataStorageInterface",
    "FilterStorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
