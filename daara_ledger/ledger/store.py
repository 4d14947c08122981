"""
Record Store

Maps a (year, month) pair to exactly one MonthlyRecord.

Reads never create data: get() on a missing month returns a fresh
zero-valued record that is NOT inserted. A month enters the store only
when put() is called after its first successful mutation.

The store works on its own copy of the records mapping. Callers build a
new AppData from as_dict() once they are done, so the root aggregate is
replaced in one assignment instead of being edited in place.
"""

from typing import Iterator, Mapping, Optional, Union

from daara_ledger.ledger.engine import LedgerError, new_record
from daara_ledger.models import Month, MonthlyRecord


class InvalidMonthError(LedgerError, ValueError):
    """Month name is not one of the twelve canonical months."""
    pass


def _month(month: Union[Month, str]) -> Month:
    try:
        return Month(month)
    except ValueError:
        raise InvalidMonthError(f"Unknown month: {month!r}")


def record_key(year: int, month: Union[Month, str]) -> str:
    """Store key for a month, e.g. record_key(2024, "Janvier") == "2024-Janvier"."""
    return f"{int(year)}-{_month(month).value}"


class RecordStore:
    """
    In-memory map of monthly records keyed by year and month name.
    """

    def __init__(self, records: Optional[Mapping[str, MonthlyRecord]] = None):
        self._records: dict[str, MonthlyRecord] = dict(records or {})

    def get(self, year: int, month: Union[Month, str]) -> MonthlyRecord:
        """Stored record, or a zero-valued default (not inserted)."""
        record = self._records.get(record_key(year, month))
        if record is None:
            return new_record(year, _month(month))
        return record

    def exists(self, year: int, month: Union[Month, str]) -> bool:
        return record_key(year, month) in self._records

    def put(self, record: MonthlyRecord) -> None:
        """Insert or replace the record under its own (year, month) key."""
        self._records[record.key] = record

    def delete(self, year: int, month: Union[Month, str]) -> bool:
        """
        Remove a month. Deleting a missing month is a no-op.

        Returns True if a record was removed.
        """
        return self._records.pop(record_key(year, month), None) is not None

    def records(self) -> list[MonthlyRecord]:
        """All stored records, in insertion order."""
        return list(self._records.values())

    def as_dict(self) -> dict[str, MonthlyRecord]:
        """Copy of the underlying mapping."""
        return dict(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[MonthlyRecord]:
        return iter(self.records())
