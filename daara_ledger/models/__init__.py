"""
Data Models Package

This package contains all Pydantic models used in Daara Ledger.
All data flowing through the system must conform to these schemas.
"""

from daara_ledger.models.amounts import (
    HUNDRED,
    ZERO,
    coerce_amount,
    coerce_percent,
)
from daara_ledger.models.ledger import (
    ALL,
    MONTHS,
    AppConfig,
    AppData,
    BrowserFilters,
    Contribution,
    DetailedReport,
    EntryType,
    Expense,
    FundAllocation,
    FundBalances,
    FundKey,
    FundState,
    Member,
    Month,
    MonthlyRecord,
    MonthReport,
    MonthSummary,
    OtherIncome,
    SearchHit,
    SelectionResult,
    SelectionTotals,
    ValidationIssue,
    ValidationResult,
    month_index,
    new_entry_id,
)
from daara_ledger.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Numeric coercion
    "HUNDRED",
    "ZERO",
    "coerce_amount",
    "coerce_percent",
    # Ledger models
    "ALL",
    "MONTHS",
    "AppConfig",
    "AppData",
    "BrowserFilters",
    "Contribution",
    "DetailedReport",
    "EntryType",
    "Expense",
    "FundAllocation",
    "FundBalances",
    "FundKey",
    "FundState",
    "Member",
    "Month",
    "MonthlyRecord",
    "MonthReport",
    "MonthSummary",
    "OtherIncome",
    "SearchHit",
    "SelectionResult",
    "SelectionTotals",
    "ValidationIssue",
    "ValidationResult",
    "month_index",
    "new_entry_id",
    # Event models
    "EventSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
