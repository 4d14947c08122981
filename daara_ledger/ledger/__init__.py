"""Ledger package: allocation, monthly record engine and record store."""

from daara_ledger.ledger.allocation import allocate, build_allocation, fund_share
from daara_ledger.ledger.engine import (
    LedgerError,
    UnknownFieldError,
    add_contribution,
    add_entry,
    add_expense,
    add_other_income,
    carry_forward,
    net_monthly,
    new_record,
    recompute,
    remove_contribution,
    remove_entry,
    remove_expense,
    remove_other_income,
    set_prior_balance,
    total_contributions,
    total_expenses,
    total_other_income,
    total_received,
    touch,
    update_contribution,
    update_entry,
    update_expense,
    update_other_income,
)
from daara_ledger.ledger.store import InvalidMonthError, RecordStore, record_key

__all__ = [
    # Allocation
    "allocate",
    "build_allocation",
    "fund_share",
    # Engine
    "LedgerError",
    "UnknownFieldError",
    "add_contribution",
    "add_entry",
    "add_expense",
    "add_other_income",
    "carry_forward",
    "net_monthly",
    "new_record",
    "recompute",
    "remove_contribution",
    "remove_entry",
    "remove_expense",
    "remove_other_income",
    "set_prior_balance",
    "total_contributions",
    "total_expenses",
    "total_other_income",
    "total_received",
    "touch",
    "update_contribution",
    "update_entry",
    "update_expense",
    "update_other_income",
    # Store
    "InvalidMonthError",
    "RecordStore",
    "record_key",
]
