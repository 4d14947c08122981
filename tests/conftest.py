"""
Shared test fixtures.
"""

import pytest

from daara_ledger.services.storage import InMemoryStorage, StorageError


class RecordingStorage(InMemoryStorage):
    """In-memory storage that counts saves and can be told to fail once."""

    def __init__(self, data=None):
        super().__init__(data)
        self.save_count = 0
        self.fail_next_save = False

    async def save(self, data):
        if self.fail_next_save:
            self.fail_next_save = False
            raise StorageError("Simulated save failure")
        await super().save(data)
        self.save_count += 1


@pytest.fixture
def recording_storage():
    return RecordingStorage()
