"""
Aggregation & Query Engine

Read-only views over the stored monthly records: chronological listing,
current fund balances, filtering, selection totals, the dashboard chart
and free-text search.

The executor never mutates the records it is given and holds no session
state. Filters are passed in explicitly on every call.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from daara_ledger.ledger import RecordStore, engine
from daara_ledger.models import (
    ALL,
    ZERO,
    AppConfig,
    BrowserFilters,
    EntryType,
    FundBalances,
    FundKey,
    Month,
    MonthlyRecord,
    MonthSummary,
    SearchHit,
    SelectionResult,
    SelectionTotals,
)


def chronological_key(record: MonthlyRecord) -> tuple[int, int]:
    """Sort key: (year, month index). Larger means more recent."""
    return record.year, record.month_index


def member_roster(config: AppConfig) -> list[str]:
    """Full names of the registered members, in roster order."""
    return [member.full_name for member in config.members]


class LedgerQueryExecutor:
    """
    Executes read-only queries against a set of monthly records.

    GUARANTEES:
    - Only returns real data from the records it was given
    - Missing months are reported as missing, never invented
    - Totals over a selection always equal the sum of per-month totals
    """

    def __init__(self, records: Union[RecordStore, Mapping[str, MonthlyRecord], Iterable[MonthlyRecord]]):
        if isinstance(records, RecordStore):
            self._records = records.records()
        elif isinstance(records, Mapping):
            self._records = list(records.values())
        else:
            self._records = list(records)

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def all_records_sorted(self) -> list[MonthlyRecord]:
        """All records, most recent first (year desc, then month desc)."""
        return sorted(self._records, key=chronological_key, reverse=True)

    def latest_record(self) -> Optional[MonthlyRecord]:
        ordered = self.all_records_sorted()
        return ordered[0] if ordered else None

    def previous_record(self, year: int, month: Union[Month, str]) -> Optional[MonthlyRecord]:
        """The most recent stored record strictly before (year, month)."""
        target = (int(year), Month(month).position)
        for record in self.all_records_sorted():
            if chronological_key(record) < target:
                return record
        return None

    def current_fund_balances(self) -> FundBalances:
        """
        New balance of each fund in the most recent record.

        Latest wins: this is a snapshot of one month, not a running sum.
        With no records, every fund is zero.
        """
        latest = self.latest_record()
        if latest is None:
            return FundBalances()
        balances = latest.allocation.new_balances()
        return FundBalances(
            renovation=balances[FundKey.RENOVATION],
            social=balances[FundKey.SOCIAL],
            board=balances[FundKey.BOARD],
        )

    def available_years(self) -> list[str]:
        """Distinct years that have at least one record, newest first."""
        years = {record.year for record in self._records}
        return [str(year) for year in sorted(years, reverse=True)]

    # -------------------------------------------------------------------------
    # Filtering & totals
    # -------------------------------------------------------------------------

    def filter(
        self,
        records: Optional[Iterable[MonthlyRecord]] = None,
        filters: Optional[BrowserFilters] = None,
    ) -> list[MonthlyRecord]:
        """
        Keep records matching every active filter.

        - year: the record's year as a string
        - month: the record's month name
        - member: at least one contribution whose full name matches,
          ignoring case

        Defaults to all records, most recent first, unfiltered.
        """
        if records is None:
            records = self.all_records_sorted()
        filters = filters or BrowserFilters()
        member = filters.member.lower()

        selected = []
        for record in records:
            if filters.year != ALL and str(record.year) != filters.year:
                continue
            if filters.month != ALL and record.month.value != filters.month:
                continue
            if filters.member != ALL and not any(
                c.full_name.lower() == member for c in record.contributions
            ):
                continue
            selected.append(record)
        return selected

    def selection_totals(self, records: Iterable[MonthlyRecord]) -> SelectionTotals:
        """Element-wise sums over a selection of months."""
        contributions = other = expenses = ZERO
        for record in records:
            contributions += engine.total_contributions(record)
            other += engine.total_other_income(record)
            expenses += engine.total_expenses(record)

        received = contributions + other
        return SelectionTotals(
            contributions=contributions,
            other=other,
            received=received,
            expenses=expenses,
            net=received - expenses,
        )

    def execute(self, filters: Optional[BrowserFilters] = None) -> SelectionResult:
        """Filter, total and attach the current balances in one call."""
        filters = filters or BrowserFilters()
        records = self.filter(filters=filters)
        return SelectionResult(
            filters=filters,
            records=records,
            totals=self.selection_totals(records),
            balances=self.current_fund_balances(),
        )

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    def monthly_overview(self, year: int) -> list[MonthSummary]:
        """Received / expenses / net for each month of a year (zeros where no record)."""
        by_month = {
            record.month: record for record in self._records if record.year == int(year)
        }
        rows = []
        for month in Month:
            record = by_month.get(month)
            if record is None:
                rows.append(MonthSummary(month=month, label=month.short_label))
                continue
            received = engine.total_received(record)
            expenses = engine.total_expenses(record)
            rows.append(MonthSummary(
                month=month,
                label=month.short_label,
                received=received,
                expenses=expenses,
                net=received - expenses,
                has_record=True,
            ))
        return rows

    def grand_total_contributions(self) -> Decimal:
        """Contributions over every stored month."""
        return sum((engine.total_contributions(r) for r in self._records), ZERO)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, query: str) -> list[SearchHit]:
        """
        Case-insensitive substring search over entry names.

        Looks at contribution given and family names, other-income sources
        and expense labels. A blank query returns nothing.
        """
        needle = (query or "").strip().lower()
        if not needle:
            return []

        hits = []
        for record in self.all_records_sorted():
            for c in record.contributions:
                if needle in c.given_name.lower() or needle in c.family_name.lower():
                    hits.append(self._hit(record, EntryType.CONTRIBUTION, c.id, c.full_name, c.amount))
            for s in record.other_income:
                if needle in s.source.lower():
                    hits.append(self._hit(record, EntryType.OTHER_INCOME, s.id, s.source, s.amount))
            for e in record.expenses:
                if needle in e.label.lower():
                    hits.append(self._hit(record, EntryType.EXPENSE, e.id, e.label, e.amount))
        return hits

    def _hit(
        self,
        record: MonthlyRecord,
        entry_type: EntryType,
        entry_id: str,
        name: str,
        amount: Decimal,
    ) -> SearchHit:
        return SearchHit(
            entry_type=entry_type,
            entry_id=entry_id,
            name=name,
            amount=amount,
            month=record.month,
            year=record.year,
        )
