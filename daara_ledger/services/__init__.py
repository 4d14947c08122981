"""Services package."""

from daara_ledger.services.storage import (
    AppDataStorageInterface,
    CorruptDataError,
    FilterStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
)

__all__ = [
    # Storage services
    "AppDataStorageInterface",
    "CorruptDataError",
    "FilterStorageInterface",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
]
