"""
Tests for the record store.
"""

import pytest

from daara_ledger.ledger import (
    InvalidMonthError,
    LedgerError,
    RecordStore,
    add_contribution,
    new_record,
    record_key,
)
from daara_ledger.models import AppConfig, Month


@pytest.fixture
def config():
    return AppConfig(renovation_percent=40, social_percent=30, board_percent=30)


class TestRecordKey:
    """Tests for record keys."""

    def test_key_format(self):
        """Test the '<year>-<month>' key."""
        assert record_key(2024, "Janvier") == "2024-Janvier"
        assert record_key("2025", Month.AUGUST) == "2025-Août"

    def test_invalid_month(self):
        """Test that unknown month names raise a ledger error."""
        with pytest.raises(InvalidMonthError):
            record_key(2024, "Smarch")
        assert issubclass(InvalidMonthError, LedgerError)
        assert issubclass(InvalidMonthError, ValueError)


class TestRecordStore:
    """Tests for RecordStore."""

    def test_get_missing_returns_default_without_inserting(self):
        """Test that reading an unknown month does not create it."""
        store = RecordStore()
        record = store.get(2024, "Mars")
        assert record.key == "2024-Mars"
        assert record.contributions == []
        assert record.created_at is None
        assert not store.exists(2024, "Mars")
        assert len(store) == 0

    def test_put_then_get(self, config):
        """Test that a stored record comes back under its key."""
        store = RecordStore()
        record = add_contribution(new_record(2024, "Mars"), config, "A", "B", 100)
        store.put(record)
        assert store.exists(2024, Month.MARCH)
        assert store.get(2024, "Mars") is record
        assert "2024-Mars" in store

    def test_put_replaces(self, config):
        """Test that putting the same month twice keeps one record."""
        store = RecordStore()
        first = new_record(2024, "Mars")
        second = add_contribution(first, config, "A", "B", 100)
        store.put(first)
        store.put(second)
        assert len(store) == 1
        assert store.get(2024, "Mars") is second

    def test_delete_is_idempotent(self):
        """Test that deleting twice removes once and then does nothing."""
        store = RecordStore()
        store.put(new_record(2024, "Avril"))
        assert store.delete(2024, "Avril") is True
        assert store.delete(2024, "Avril") is False
        assert not store.exists(2024, "Avril")

    def test_works_on_a_copy(self):
        """Test that the store never edits the mapping it was built from."""
        source = {"2024-Mai": new_record(2024, "Mai")}
        store = RecordStore(source)
        store.delete(2024, "Mai")
        store.put(new_record(2024, "Juin"))
        assert list(source) == ["2024-Mai"]
        assert list(store.as_dict()) == ["2024-Juin"]

    def test_iteration(self):
        """Test iterating over stored records."""
        store = RecordStore()
        store.put(new_record(2024, "Mai"))
        store.put(new_record(2023, "Mai"))
        assert {r.key for r in store} == {"2024-Mai", "2023-Mai"}
        assert len(store.records()) == 2
