"""
Integration tests for LedgerService.

Every flow runs against in-memory or tmp_path storage.
"""

import asyncio

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from daara_ledger.models import (
    AppConfig,
    AppData,
    BrowserFilters,
    EntryType,
    FundKey,
    Month,
)
from daara_ledger.orchestrator import LedgerService, create_initial_data
from daara_ledger.services.storage import (
    CorruptDataError,
    JsonFileStorage,
    StorageError,
)

T0 = datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=2)


@pytest.fixture
def storage(recording_storage):
    return recording_storage


@pytest.fixture
def service(storage):
    data = AppData(config=AppConfig(renovation_percent=40, social_percent=30, board_percent=30))
    return LedgerService(storage=storage, data=data)


class TestLoad:
    """Tests for startup."""

    def test_initial_data(self):
        """Test the fresh-install aggregate."""
        data = create_initial_data()
        assert data.records == {}
        assert data.config.members == []
        assert data.config.percent_total == 100

    def test_load_empty_storage(self, storage):
        """Test that nothing stored yields the initial data."""
        service = LedgerService(storage=storage)
        data = asyncio.run(service.load())
        assert data.records == {}
        assert data.config.percents()[FundKey.RENOVATION] == 40

    def test_load_stored_data(self, service, storage):
        """Test that a second service sees what the first saved."""
        asyncio.run(service.add_contribution(2024, "Janvier", "Awa", "Ndiaye", 5000))
        reloaded = LedgerService(storage=storage)
        asyncio.run(reloaded.load())
        assert reloaded.get_record(2024, "Janvier").contributions[0].full_name == "Awa Ndiaye"

    def test_corrupt_storage_raises(self, tmp_path):
        """Test that an unreadable ledger file is reported, not silently replaced."""
        path = tmp_path / "data.json"
        path.write_text("garbage", encoding="utf-8")
        service = LedgerService(storage=JsonFileStorage(data_path=path, filters_path=tmp_path / "f.json"))
        with pytest.raises(CorruptDataError):
            asyncio.run(service.load())


class TestMonthFlow:
    """Tests for editing a month end to end."""

    def test_read_does_not_create(self, service, storage):
        """Test that looking at a month does not store it."""
        record = service.get_record(2024, "Mars")
        assert record.created_at is None
        assert service.data.records == {}
        assert storage.save_count == 0

    def test_first_edit_creates_month(self, service, storage):
        """Test that the first mutation inserts, stamps and saves the month."""
        record = asyncio.run(service.add_contribution(2024, Month.MARCH, "Awa", "Ndiaye", 1000, now=T0))
        assert record.created_at == T0
        assert "2024-Mars" in service.data.records
        assert storage.save_count == 1

    def test_later_edit_keeps_created_at(self, service):
        """Test timestamps across two edits."""
        asyncio.run(service.add_contribution(2024, "Mars", "Awa", "Ndiaye", 1000, now=T0))
        record = asyncio.run(service.add_expense(2024, "Mars", "Eau", 100, now=T1))
        assert record.created_at == T0
        assert record.updated_at == T1

    def test_standard_allocation(self, service):
        """Test 100 000 received and 40 000 spent with a 40/30/30 split."""
        asyncio.run(service.add_contribution(2024, "Janvier", "Amadou", "Diop", 100000))
        record = asyncio.run(service.add_expense(2024, "Janvier", "Électricité", 40000))
        assert record.allocation.new_balances() == {
            FundKey.RENOVATION: Decimal("24000"),
            FundKey.SOCIAL: Decimal("18000"),
            FundKey.BOARD: Decimal("18000"),
        }

    def test_update_and_remove(self, service):
        """Test editing then removing an entry."""
        record = asyncio.run(service.add_other_income(2024, "Mai", "Kermes", 500))
        entry_id = record.other_income[0].id
        record = asyncio.run(service.update_other_income(2024, "Mai", entry_id, "source", "Kermesse"))
        assert record.other_income[0].source == "Kermesse"
        record = asyncio.run(service.remove_other_income(2024, "Mai", entry_id))
        assert record.other_income == []

    def test_unknown_entry_is_noop(self, service, storage):
        """Test that an unknown id neither saves nor creates the month."""
        record = asyncio.run(service.update_expense(2024, "Juin", "missing", "amount", 10))
        assert record.created_at is None
        assert "2024-Juin" not in service.data.records
        assert storage.save_count == 0

    def test_generic_entry_api(self, service):
        """Test the entry-type based methods."""
        record = asyncio.run(service.add_entry(2024, "Mai", EntryType.EXPENSE, label="Eau", amount=300))
        assert record.expenses[0].amount == Decimal("300")


class TestFundFlow:
    """Tests for prior balances and carry forward."""

    def test_set_prior_balance(self, service):
        """Test seeding a fund's opening balance."""
        record = asyncio.run(service.set_prior_balance(2024, "Janvier", FundKey.SOCIAL, 5000))
        assert record.allocation.fund(FundKey.SOCIAL).new_balance == Decimal("5000")
        assert "2024-Janvier" in service.data.records

    def test_carry_forward(self, service):
        """Test seeding a month from the closest earlier stored month."""
        asyncio.run(service.add_contribution(2023, "Décembre", "Awa", "Ndiaye", 10000))
        record = asyncio.run(service.carry_forward(2024, "Février"))
        assert record.allocation.fund(FundKey.RENOVATION).prior_balance == Decimal("4000")
        assert record.allocation.fund(FundKey.BOARD).new_balance == Decimal("3000")

    def test_carry_forward_without_history(self, service, storage):
        """Test that there is nothing to carry on an empty ledger."""
        assert asyncio.run(service.carry_forward(2024, "Février")) is None
        assert storage.save_count == 0


class TestDelete:
    """Tests for record deletion."""

    def test_delete_twice(self, service):
        """Test that deletion is idempotent."""
        asyncio.run(service.add_contribution(2024, "Mars", "Awa", "Ndiaye", 1000))
        assert asyncio.run(service.delete_record(2024, "Mars")) is True
        assert asyncio.run(service.delete_record(2024, "Mars")) is False
        assert service.data.records == {}

    def test_deleted_month_reads_as_default(self, service):
        """Test that a deleted month comes back empty."""
        asyncio.run(service.add_contribution(2024, "Mars", "Awa", "Ndiaye", 1000))
        asyncio.run(service.delete_record(2024, "Mars"))
        assert service.get_record(2024, "Mars").contributions == []


class TestFailedSave:
    """Tests for the save-then-swap guarantee."""

    def test_failed_save_keeps_previous_state(self, service, storage):
        """Test that a storage failure leaves the in-memory ledger untouched."""
        asyncio.run(service.add_contribution(2024, "Mars", "Awa", "Ndiaye", 1000))
        before = service.data

        storage.fail_next_save = True
        with pytest.raises(StorageError):
            asyncio.run(service.add_expense(2024, "Mars", "Eau", 100))

        assert service.data is before
        assert service.get_record(2024, "Mars").expenses == []


class TestConfiguration:
    """Tests for configuration and roster flows."""

    def test_save_config_over_100_percent(self, service):
        """Test that a 110% split is saved with a warning."""
        config = service.config.model_copy(update={"renovation_percent": 50})
        result = asyncio.run(service.save_config(config))
        assert result.is_valid
        assert len(result.warnings) == 1
        assert service.config.percent_total == 110

    def test_existing_months_keep_allocation_until_edited(self, service):
        """Test that a new split applies on a month's next edit only."""
        asyncio.run(service.add_contribution(2024, "Mars", "Awa", "Ndiaye", 10000))
        config = service.config.model_copy(
            update={"renovation_percent": 100, "social_percent": 0, "board_percent": 0}
        )
        asyncio.run(service.save_config(config))
        assert service.get_record(2024, "Mars").allocation.fund(FundKey.RENOVATION).new_balance == Decimal("4000")

        record = asyncio.run(service.add_expense(2024, "Mars", "Eau", 0))
        assert record.allocation.fund(FundKey.RENOVATION).new_balance == Decimal("10000")

    def test_add_member(self, service, storage):
        """Test adding a member to the roster."""
        result = asyncio.run(service.add_member("Awa", "Ndiaye"))
        assert result.is_valid
        assert [m.full_name for m in service.config.members] == ["Awa Ndiaye"]
        assert storage.save_count == 1

    def test_blank_member_refused(self, service, storage):
        """Test that a member without a family name is not saved."""
        result = asyncio.run(service.add_member("Awa", "  "))
        assert not result.is_valid
        assert service.config.members == []
        assert storage.save_count == 0

    def test_remove_member(self, service):
        """Test removing by roster position."""
        asyncio.run(service.add_member("Awa", "Ndiaye"))
        asyncio.run(service.add_member("Amadou", "Diop"))
        removed = asyncio.run(service.remove_member(0))
        assert removed.full_name == "Awa Ndiaye"
        assert [m.full_name for m in service.config.members] == ["Amadou Diop"]
        assert asyncio.run(service.remove_member(5)) is None


class TestQueriesAndFilters:
    """Tests for read paths and saved filters."""

    def test_member_filter_selection(self, service):
        """Test browsing by member over the service's records."""
        asyncio.run(service.add_contribution(2024, "Janvier", "Amadou", "Diop", 5000))
        asyncio.run(service.add_contribution(2024, "Février", "Fatou", "Sall", 3000))
        result = service.queries().execute(BrowserFilters(member="Amadou Diop"))
        assert [r.key for r in result.records] == ["2024-Janvier"]

    def test_filters_round_trip(self, service):
        """Test saving and loading the browsing filters."""
        assert asyncio.run(service.load_filters()).is_unfiltered
        asyncio.run(service.save_filters(BrowserFilters(year="2024")))
        assert asyncio.run(service.load_filters()).year == "2024"
