"""
Tests for Daara Ledger

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for flows (with in-memory or tmp_path storage)
3. No shared state between tests (every test builds its own data)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from daara_ledger.models import (
    AppConfig,
    AppData,
    BrowserFilters,
    Contribution,
    EntryType,
    Expense,
    FundAllocation,
    FundKey,
    FundState,
    Member,
    Month,
    MonthlyRecord,
    OtherIncome,
    ValidationIssue,
    ValidationResult,
    coerce_amount,
    coerce_percent,
    month_index,
)
from daara_ledger.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)


class TestNumericCoercion:
    """Tests for the amount and percent coercion helpers."""

    def test_amount_from_string(self):
        """Test that numeric strings parse, with comma decimals accepted."""
        assert coerce_amount("1500") == Decimal("1500")
        assert coerce_amount("12,5") == Decimal("12.5")
        assert coerce_amount(" 10 000 ") == Decimal("10000")

    def test_amount_garbage_becomes_zero(self):
        """Test that unparseable input coerces to zero instead of failing."""
        assert coerce_amount("abc") == Decimal("0")
        assert coerce_amount("") == Decimal("0")
        assert coerce_amount(None) == Decimal("0")
        assert coerce_amount(float("nan")) == Decimal("0")

    def test_amount_float_keeps_decimal_text(self):
        """Test that floats go through their shortest repr."""
        assert coerce_amount(0.1) == Decimal("0.1")

    def test_negative_amount_clamped_unless_allowed(self):
        """Test that entry amounts are non-negative but balances may be negative."""
        assert coerce_amount(-500) == Decimal("0")
        assert coerce_amount(-500, allow_negative=True) == Decimal("-500")

    def test_percent_truncates(self):
        """Test that decimal percents truncate toward zero and keep their sign."""
        assert coerce_percent("40.9") == 40
        assert coerce_percent(30) == 30
        assert coerce_percent("abc") == 0
        assert coerce_percent("-10.7") == -10


class TestMonth:
    """Tests for the Month enum."""

    def test_calendar_order(self):
        """Test that months are declared in calendar order."""
        assert [m.value for m in Month][:3] == ["Janvier", "Février", "Mars"]
        assert Month.DECEMBER.position == 11

    def test_month_index(self):
        """Test month_index on names."""
        assert month_index("Janvier") == 0
        assert month_index("Août") == 7

    def test_unknown_month_rejected(self):
        """Test that an unknown month name raises."""
        with pytest.raises(ValueError):
            month_index("January")

    def test_short_label(self):
        """Test the chart label."""
        assert Month.FEBRUARY.short_label == "Fév"


class TestEntryModels:
    """Tests for contribution, other income and expense models."""

    def test_contribution_creation(self):
        """Test Contribution model creation."""
        c = Contribution(given_name="Amadou", family_name="Diop", amount="5000")
        assert c.amount == Decimal("5000")
        assert c.full_name == "Amadou Diop"
        assert c.id

    def test_entry_ids_are_unique(self):
        """Test that each entry gets its own id."""
        ids = {Expense(label="Eau").id for _ in range(20)}
        assert len(ids) == 20

    def test_strips_whitespace(self):
        """Test that whitespace is stripped from names."""
        c = Contribution(given_name="  Fatou  ", family_name=" Sall ")
        assert c.full_name == "Fatou Sall"

    def test_bad_amount_becomes_zero(self):
        """Test that garbage amounts do not fail validation."""
        assert OtherIncome(source="Vente", amount="beaucoup").amount == Decimal("0")
        assert Expense(label="Eau", amount=-10).amount == Decimal("0")

    def test_legacy_keys_accepted(self):
        """Test that the browser tool's field names still load."""
        c = Contribution.model_validate({"id": "c1", "prenom": "Awa", "nom": "Ndiaye", "montant": 2000})
        e = Expense.model_validate({"id": "e1", "designation": "Électricité", "total": 15000})
        assert c.given_name == "Awa"
        assert c.amount == Decimal("2000")
        assert e.label == "Électricité"
        assert e.amount == Decimal("15000")


class TestFundModels:
    """Tests for fund state and allocation models."""

    def test_balances_may_be_negative(self):
        """Test that fund balances keep their sign."""
        state = FundState(prior_balance="-2500", new_balance=-100)
        assert state.prior_balance == Decimal("-2500")
        assert state.new_balance == Decimal("-100")

    def test_allocation_items_in_fund_order(self):
        """Test iteration order over the three funds."""
        allocation = FundAllocation()
        assert [key for key, _ in allocation.items()] == list(FundKey)

    def test_from_states(self):
        """Test building an allocation from a fund -> state mapping."""
        allocation = FundAllocation.from_states({
            FundKey.RENOVATION: FundState(prior_balance=1),
            FundKey.SOCIAL: FundState(prior_balance=2),
            FundKey.BOARD: FundState(prior_balance=3),
        })
        assert allocation.fund("social").prior_balance == Decimal("2")
        assert allocation.prior_balances()[FundKey.BOARD] == Decimal("3")


class TestMonthlyRecord:
    """Tests for MonthlyRecord."""

    def test_key_and_period(self):
        """Test the store key and display period."""
        record = MonthlyRecord(month=Month.JANUARY, year=2024)
        assert record.key == "2024-Janvier"
        assert record.period == "Janvier 2024"
        assert record.month_index == 0

    def test_defaults_are_empty(self):
        """Test a fresh record has no entries, zero funds and no timestamps."""
        record = MonthlyRecord(month="Mars", year=2024)
        assert record.contributions == []
        assert record.allocation.fund(FundKey.RENOVATION).new_balance == Decimal("0")
        assert record.created_at is None

    def test_legacy_record_loads(self):
        """Test that a record saved by the browser tool loads."""
        record = MonthlyRecord.model_validate({
            "month": "Février",
            "year": 2024,
            "cotisations": [{"id": "a", "prenom": "Amadou", "nom": "Diop", "montant": 5000}],
            "autresSommes": [{"id": "b", "source": "Kermesse", "montant": 1000}],
            "depenses": [{"id": "c", "designation": "Eau", "total": 500}],
            "repartition": {
                "caisseRenovation": {"ancienSolde": 100, "nouveauSolde": 2300},
                "caisseSociale": {"ancienSolde": 0, "nouveauSolde": 1650},
                "comiteDirecteur": {"ancienSolde": 0, "nouveauSolde": 1650},
            },
            "createdAt": "2024-02-03T10:00:00.000Z",
        })
        assert record.contributions[0].full_name == "Amadou Diop"
        assert record.other_income[0].amount == Decimal("1000")
        assert record.allocation.fund(FundKey.RENOVATION).prior_balance == Decimal("100")
        assert record.created_at == datetime(2024, 2, 3, 10, 0, tzinfo=timezone.utc)


class TestAppConfig:
    """Tests for AppConfig."""

    def test_percent_total_not_enforced(self):
        """Test that percents summing to more than 100 are accepted."""
        config = AppConfig(renovation_percent=50, social_percent=30, board_percent=30)
        assert config.percent_total == 110

    def test_negative_percent_kept(self):
        """Test that a negative percent is stored as entered."""
        config = AppConfig(renovation_percent="-10", social_percent=60, board_percent=50)
        assert config.renovation_percent == -10
        assert config.percent_total == 100

    def test_percents_by_fund(self):
        """Test percent lookup by fund key."""
        config = AppConfig(renovation_percent=40, social_percent=30, board_percent=30)
        assert config.percent_for("renovation") == 40
        assert config.percents() == {
            FundKey.RENOVATION: 40,
            FundKey.SOCIAL: 30,
            FundKey.BOARD: 30,
        }

    def test_legacy_config_loads(self):
        """Test the browser tool's configuration keys."""
        config = AppConfig.model_validate({
            "location": "Thiès",
            "phone": None,
            "email": "daara@example.org",
            "logo": "data:image/png;base64,AAAA",
            "defaultRenovationPercent": "40",
            "defaultSocialePercent": 30.7,
            "defaultComitePercent": 30,
            "members": [{"prenom": "Amadou", "nom": "Diop"}],
        })
        assert config.phone == ""
        assert config.logo_ref.startswith("data:image/png")
        assert config.percents()[FundKey.SOCIAL] == 30
        assert config.members == [Member(given_name="Amadou", family_name="Diop")]


class TestAppData:
    """Tests for the root aggregate."""

    def test_record_must_sit_under_its_key(self):
        """Test that a record stored under another month's key is rejected."""
        record = MonthlyRecord(month=Month.MARCH, year=2024)
        with pytest.raises(ValueError, match="belongs to '2024-Mars'"):
            AppData(records={"2024-Avril": record})

    def test_valid_aggregate(self):
        """Test a well-formed aggregate."""
        record = MonthlyRecord(month=Month.MARCH, year=2024)
        data = AppData(records={record.key: record})
        assert list(data.records) == ["2024-Mars"]


class TestBrowserFilters:
    """Tests for browsing filters."""

    def test_defaults_are_unfiltered(self):
        """Test that every filter defaults to 'all'."""
        assert BrowserFilters().is_unfiltered

    def test_normalization(self):
        """Test that blanks, ints and months normalize to strings."""
        filters = BrowserFilters(year=2024, month=Month.MAY, member="  ")
        assert filters.year == "2024"
        assert filters.month == "Mai"
        assert filters.member == "all"
        assert not filters.is_unfiltered


class TestEventModels:
    """Tests for ledger event models."""

    def test_event_creation(self):
        """Test LedgerEvent creation."""
        event = LedgerEvent(
            event_type=LedgerEventType.RECORD_CREATED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.severity == EventSeverity.INFO

    def test_event_to_log_dict(self):
        """Test conversion to a log dictionary."""
        event = LedgerEvent(
            event_type=LedgerEventType.ENTRY_ADDED,
            record_key="2024-Janvier",
            description="Test",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "entry_added"
        assert log_dict["record_key"] == "2024-Janvier"

    def test_builder_record_deleted_is_warning(self):
        """Test that deletions are logged as warnings."""
        event = LedgerEventBuilder.record_deleted("2024-Mars")
        assert event.event_type == LedgerEventType.RECORD_DELETED
        assert event.severity == EventSeverity.WARNING

    def test_builder_storage_failed(self):
        """Test that load and save failures map to their own event types."""
        load = LedgerEventBuilder.storage_failed("load", "boom")
        save = LedgerEventBuilder.storage_failed("save", "boom")
        assert load.event_type == LedgerEventType.LOAD_FAILED
        assert save.event_type == LedgerEventType.SAVE_FAILED
        assert save.severity == EventSeverity.ERROR
        assert save.error_message == "boom"


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="given_name",
                    issue_type="missing",
                    message="Given name is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test result with only warnings."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="percents",
                    issue_type="percent_total",
                    message="Fund percentages add up to 110%, not 100%",
                    severity="warning",
                ),
            ],
        )
        assert not result.has_errors
        assert len(result.warnings) == 1


class TestEntryTypes:
    """Tests for the entry type enum."""

    def test_all_types_exist(self):
        """Test that the three entry kinds exist."""
        assert {t.value for t in EntryType} == {"contribution", "other_income", "expense"}

    def test_labels(self):
        """Test display labels."""
        assert EntryType.CONTRIBUTION.label == "Cotisation"
        assert EntryType.EXPENSE.label == "Dépense"


class TestPublicNames:
    """Tests for the models package exports."""

    def test_exports_resolve(self):
        """Test that every exported name exists and no entry union is exported."""
        from daara_ledger import models

        assert all(hasattr(models, name) for name in models.__all__)
        assert "LedgerEntry" not in models.__all__
