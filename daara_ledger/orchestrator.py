"""
Main Orchestrator for Daara Ledger

Ties the record store, the monthly record engine, persistence and the
event log together. Every user action follows the same flow:

1. Read the month from the store (a default record if it is new)
2. Apply the engine mutation
3. Build a new AppData with the updated record
4. Save it
5. Swap the service's aggregate and log the event

A failed save leaves the in-memory aggregate untouched, so the UI never
shows data that is not on disk.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Union
from uuid import UUID

from daara_ledger.config import get_settings
from daara_ledger.events import EventLogger, create_correlation_id
from daara_ledger.ledger import RecordStore, engine, record_key
from daara_ledger.models import (
    AppConfig,
    AppData,
    BrowserFilters,
    EntryType,
    FundKey,
    Member,
    Month,
    MonthlyRecord,
    ValidationResult,
)
from daara_ledger.queries import LedgerQueryExecutor
from daara_ledger.services.storage import (
    AppDataStorageInterface,
    FilterStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
)
from daara_ledger.validation import ConfigValidator


_ENTRY_ATTRS = {
    EntryType.CONTRIBUTION: "contributions",
    EntryType.OTHER_INCOME: "other_income",
    EntryType.EXPENSE: "expenses",
}


def create_initial_data() -> AppData:
    """Empty ledger with the configured default split and no members."""
    defaults = get_settings().allocation
    return AppData(
        config=AppConfig(
            renovation_percent=defaults.default_renovation_percent,
            social_percent=defaults.default_social_percent,
            board_percent=defaults.default_board_percent,
        )
    )


class LedgerService:
    """
    Runs every ledger action end to end.

    The service owns the current AppData. Reads go through get_record()
    and queries(); writes go through the async action methods below.
    """

    def __init__(
        self,
        storage: Optional[AppDataStorageInterface] = None,
        filter_storage: Optional[FilterStorageInterface] = None,
        event_logger: Optional[EventLogger] = None,
        data: Optional[AppData] = None,
    ):
        self._storage = storage or InMemoryStorage()
        if filter_storage is None and isinstance(self._storage, FilterStorageInterface):
            filter_storage = self._storage
        self._filter_storage = filter_storage
        self._event_logger = event_logger or EventLogger()
        self._validator = ConfigValidator()
        self._data = data or create_initial_data()

    @property
    def data(self) -> AppData:
        return self._data

    @property
    def config(self) -> AppConfig:
        return self._data.config

    async def load(self) -> AppData:
        """
        Read the stored aggregate, falling back to the initial data.

        Raises:
            StorageError: If the slot exists but cannot be read
        """
        try:
            stored = await self._storage.load()
        except StorageError as e:
            self._event_logger.log_storage_failed("load", str(e))
            raise

        self._data = stored if stored is not None else create_initial_data()
        self._event_logger.log_data_loaded(len(self._data.records), stored is not None)
        return self._data

    # =========================================================================
    # READS
    # =========================================================================

    def get_record(self, year: int, month: Union[Month, str]) -> MonthlyRecord:
        """Stored month, or a zero-valued default. Never inserts."""
        return RecordStore(self._data.records).get(year, month)

    def queries(self) -> LedgerQueryExecutor:
        return LedgerQueryExecutor(self._data.records)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    async def _commit(self, data: AppData, correlation_id: UUID) -> None:
        try:
            await self._storage.save(data)
        except StorageError as e:
            self._event_logger.log_storage_failed("save", str(e), correlation_id)
            raise
        self._data = data

    async def _apply(
        self,
        year: int,
        month: Union[Month, str],
        mutate: Callable[..., MonthlyRecord],
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> tuple[MonthlyRecord, bool]:
        """
        Run one engine mutation against a month and persist it.

        Returns:
            (record, changed). `changed` is False when the mutation was a
            no-op (unknown entry id); nothing is saved in that case.
        """
        correlation_id = correlation_id or create_correlation_id()
        store = RecordStore(self._data.records)
        is_first_creation = not store.exists(year, month)
        current = store.get(year, month)

        updated = mutate(current, self._data.config, is_first_creation=is_first_creation, now=now)
        if updated is current:
            return current, False

        store.put(updated)
        await self._commit(
            self._data.model_copy(update={"records": store.as_dict()}),
            correlation_id,
        )

        if is_first_creation:
            self._event_logger.log_record_created(updated.key, correlation_id)
        return updated, True

    # =========================================================================
    # ENTRIES
    # =========================================================================

    async def add_entry(
        self,
        year: int,
        month: Union[Month, str],
        entry_type: EntryType,
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
        **fields: Any,
    ) -> MonthlyRecord:
        """Append an entry to a month, creating the month on first use."""
        entry_type = EntryType(entry_type)
        correlation_id = correlation_id or create_correlation_id()
        record, _ = await self._apply(
            year, month,
            lambda r, c, **kw: engine.add_entry(r, c, entry_type, **kw, **fields),
            correlation_id, now,
        )
        new_entry = getattr(record, _ENTRY_ATTRS[entry_type])[-1]
        self._event_logger.log_entry_added(
            record.key, entry_type.value, new_entry.id, correlation_id
        )
        return record

    async def update_entry(
        self,
        year: int,
        month: Union[Month, str],
        entry_type: EntryType,
        entry_id: str,
        field: str,
        value: Any,
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> MonthlyRecord:
        entry_type = EntryType(entry_type)
        correlation_id = correlation_id or create_correlation_id()
        record, changed = await self._apply(
            year, month,
            lambda r, c, **kw: engine.update_entry(r, c, entry_type, entry_id, field, value, **kw),
            correlation_id, now,
        )
        if changed:
            self._event_logger.log_entry_updated(
                record.key, entry_type.value, entry_id, field, correlation_id
            )
        return record

    async def remove_entry(
        self,
        year: int,
        month: Union[Month, str],
        entry_type: EntryType,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> MonthlyRecord:
        entry_type = EntryType(entry_type)
        correlation_id = correlation_id or create_correlation_id()
        record, changed = await self._apply(
            year, month,
            lambda r, c, **kw: engine.remove_entry(r, c, entry_type, entry_id, **kw),
            correlation_id, now,
        )
        if changed:
            self._event_logger.log_entry_removed(
                record.key, entry_type.value, entry_id, correlation_id
            )
        return record

    async def add_contribution(
        self,
        year: int,
        month: Union[Month, str],
        given_name: str = "",
        family_name: str = "",
        amount: Any = 0,
        **kwargs: Any,
    ) -> MonthlyRecord:
        return await self.add_entry(
            year, month, EntryType.CONTRIBUTION,
            given_name=given_name, family_name=family_name, amount=amount, **kwargs,
        )

    async def update_contribution(self, year, month, entry_id, field, value, **kwargs) -> MonthlyRecord:
        return await self.update_entry(
            year, month, EntryType.CONTRIBUTION, entry_id, field, value, **kwargs
        )

    async def remove_contribution(self, year, month, entry_id, **kwargs) -> MonthlyRecord:
        return await self.remove_entry(year, month, EntryType.CONTRIBUTION, entry_id, **kwargs)

    async def add_other_income(
        self,
        year: int,
        month: Union[Month, str],
        source: str = "",
        amount: Any = 0,
        **kwargs: Any,
    ) -> MonthlyRecord:
        return await self.add_entry(
            year, month, EntryType.OTHER_INCOME, source=source, amount=amount, **kwargs
        )

    async def update_other_income(self, year, month, entry_id, field, value, **kwargs) -> MonthlyRecord:
        return await self.update_entry(
            year, month, EntryType.OTHER_INCOME, entry_id, field, value, **kwargs
        )

    async def remove_other_income(self, year, month, entry_id, **kwargs) -> MonthlyRecord:
        return await self.remove_entry(year, month, EntryType.OTHER_INCOME, entry_id, **kwargs)

    async def add_expense(
        self,
        year: int,
        month: Union[Month, str],
        label: str = "",
        amount: Any = 0,
        **kwargs: Any,
    ) -> MonthlyRecord:
        return await self.add_entry(
            year, month, EntryType.EXPENSE, label=label, amount=amount, **kwargs
        )

    async def update_expense(self, year, month, entry_id, field, value, **kwargs) -> MonthlyRecord:
        return await self.update_entry(
            year, month, EntryType.EXPENSE, entry_id, field, value, **kwargs
        )

    async def remove_expense(self, year, month, entry_id, **kwargs) -> MonthlyRecord:
        return await self.remove_entry(year, month, EntryType.EXPENSE, entry_id, **kwargs)

    # =========================================================================
    # FUND BALANCES
    # =========================================================================

    async def set_prior_balance(
        self,
        year: int,
        month: Union[Month, str],
        fund: Union[FundKey, str],
        value: Any,
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> MonthlyRecord:
        fund = FundKey(fund)
        correlation_id = correlation_id or create_correlation_id()
        record, _ = await self._apply(
            year, month,
            lambda r, c, **kw: engine.set_prior_balance(r, c, fund, value, **kw),
            correlation_id, now,
        )
        self._event_logger.log_prior_balance_set(
            record.key, fund.value, str(record.allocation.fund(fund).prior_balance), correlation_id
        )
        return record

    async def carry_forward(
        self,
        year: int,
        month: Union[Month, str],
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Optional[MonthlyRecord]:
        """
        Seed a month's prior balances from the closest earlier stored month.

        Returns None (and changes nothing) when there is no earlier month.
        """
        previous = self.queries().previous_record(year, month)
        if previous is None:
            return None

        correlation_id = correlation_id or create_correlation_id()
        record, _ = await self._apply(
            year, month,
            lambda r, c, **kw: engine.carry_forward(previous, r, c, **kw),
            correlation_id, now,
        )
        self._event_logger.log_balances_carried_forward(record.key, previous.key, correlation_id)
        return record

    async def delete_record(
        self,
        year: int,
        month: Union[Month, str],
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a month permanently. Deleting a missing month does nothing.

        Returns True if a record was removed.
        """
        store = RecordStore(self._data.records)
        if not store.delete(year, month):
            return False

        correlation_id = correlation_id or create_correlation_id()
        await self._commit(
            self._data.model_copy(update={"records": store.as_dict()}),
            correlation_id,
        )
        self._event_logger.log_record_deleted(record_key(year, month), correlation_id)
        return True

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    async def save_config(
        self,
        config: AppConfig,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Replace the configuration.

        Percent sums other than 100 are saved as-is and reported as warnings.
        Stored months keep their allocation until they are next edited.
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._validator.validate_config(config)

        await self._commit(self._data.model_copy(update={"config": config}), correlation_id)
        self._event_logger.log_config_saved(
            config.percent_total,
            [issue.message for issue in result.warnings],
            correlation_id,
        )
        return result

    async def add_member(
        self,
        given_name: str,
        family_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Add a member to the roster. Blank names are refused and nothing is saved."""
        member = Member(given_name=given_name or "", family_name=family_name or "")
        result = self._validator.validate_member(member, self.config.members)
        if not result.is_valid:
            return result

        correlation_id = correlation_id or create_correlation_id()
        config = self.config.model_copy(update={"members": [*self.config.members, member]})
        await self._commit(self._data.model_copy(update={"config": config}), correlation_id)
        self._event_logger.log_member_added(member.full_name, correlation_id)
        return result

    async def remove_member(
        self,
        index: int,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Member]:
        """Remove the roster entry at `index`. Out-of-range indexes do nothing."""
        members = list(self.config.members)
        if not 0 <= index < len(members):
            return None

        removed = members.pop(index)
        correlation_id = correlation_id or create_correlation_id()
        config = self.config.model_copy(update={"members": members})
        await self._commit(self._data.model_copy(update={"config": config}), correlation_id)
        self._event_logger.log_member_removed(removed.full_name, correlation_id)
        return removed

    # =========================================================================
    # FILTERS
    # =========================================================================

    async def save_filters(self, filters: BrowserFilters) -> None:
        if self._filter_storage is None:
            return
        try:
            await self._filter_storage.save_filters(filters)
        except StorageError as e:
            self._event_logger.log_storage_failed("save_filters", str(e))
            raise
        self._event_logger.log_filters_saved(filters.year, filters.month, filters.member)

    async def load_filters(self) -> BrowserFilters:
        """Saved filters, or the unfiltered default."""
        if self._filter_storage is None:
            return BrowserFilters()
        saved = await self._filter_storage.load_filters()
        return saved or BrowserFilters()


def create_app_components(use_storage: bool = True) -> LedgerService:
    """
    Factory function to create the ledger service.

    Args:
        use_storage: Whether to persist to the JSON files in the configured
                     data directory. Set to False for an in-memory session.
    """
    event_logger = EventLogger()
    storage = JsonFileStorage() if use_storage else InMemoryStorage()
    return LedgerService(storage=storage, event_logger=event_logger)
