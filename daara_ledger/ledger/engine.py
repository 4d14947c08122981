"""
Monthly Record Engine

Keeps one month's derived fields consistent with its entries.

Every mutation follows the same three steps:
1. Apply the list edit (or the prior balance edit)
2. Recompute the fund allocation from the new net
3. Touch the timestamps

All functions are pure: they return a new MonthlyRecord and leave the
input untouched. Percentages are read from the AppConfig passed in at
call time, so a month is reallocated with whatever split is configured
when it is next edited, not the split it was first saved with.

Unknown entry ids on update/remove are silent no-ops: the input record
is returned as-is, without recompute or touch.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

from daara_ledger.ledger.allocation import build_allocation
from daara_ledger.models import (
    ZERO,
    AppConfig,
    Contribution,
    EntryType,
    Expense,
    FundAllocation,
    FundKey,
    FundState,
    Month,
    MonthlyRecord,
    OtherIncome,
    coerce_amount,
)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class UnknownFieldError(LedgerError, ValueError):
    """An entry field that does not exist was referenced."""
    pass


# entry type -> (record attribute, model, editable fields)
_ENTRY_KINDS = {
    EntryType.CONTRIBUTION: ("contributions", Contribution, ("given_name", "family_name", "amount")),
    EntryType.OTHER_INCOME: ("other_income", OtherIncome, ("source", "amount")),
    EntryType.EXPENSE: ("expenses", Expense, ("label", "amount")),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record(year: int, month: Union[Month, str]) -> MonthlyRecord:
    """Zero-valued record for a month nobody has edited yet."""
    return MonthlyRecord(month=Month(month), year=int(year))


# =============================================================================
# TOTALS
# =============================================================================

def total_contributions(record: MonthlyRecord) -> Decimal:
    return sum((c.amount for c in record.contributions), ZERO)


def total_other_income(record: MonthlyRecord) -> Decimal:
    return sum((s.amount for s in record.other_income), ZERO)


def total_received(record: MonthlyRecord) -> Decimal:
    return total_contributions(record) + total_other_income(record)


def total_expenses(record: MonthlyRecord) -> Decimal:
    return sum((e.amount for e in record.expenses), ZERO)


def net_monthly(record: MonthlyRecord) -> Decimal:
    """Received minus expenses. Negative for a deficit month."""
    return total_received(record) - total_expenses(record)


# =============================================================================
# DERIVED STATE
# =============================================================================

def recompute(record: MonthlyRecord, config: AppConfig) -> MonthlyRecord:
    """Rebuild every fund's new balance from the record's net and the current split."""
    allocation = build_allocation(net_monthly(record), record.allocation, config)
    return record.model_copy(update={"allocation": allocation})


def touch(
    record: MonthlyRecord,
    is_first_creation: bool,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    """
    Stamp a mutation.

    updated_at is always set. created_at is set only on first creation;
    otherwise the existing value is kept (records imported without one
    get `now`).
    """
    now = now or _utcnow()
    created_at = now if is_first_creation else (record.created_at or now)
    return record.model_copy(update={"created_at": created_at, "updated_at": now})


def _commit(
    record: MonthlyRecord,
    config: AppConfig,
    is_first_creation: bool,
    now: Optional[datetime],
    **changes: Any,
) -> MonthlyRecord:
    updated = record.model_copy(update=changes)
    return touch(recompute(updated, config), is_first_creation, now)


# =============================================================================
# GENERIC ENTRY EDITS
# =============================================================================

def _check_fields(entry_type: EntryType, fields) -> None:
    allowed = _ENTRY_KINDS[entry_type][2]
    for name in fields:
        if name not in allowed:
            raise UnknownFieldError(
                f"Unknown {entry_type.value} field: {name!r}. Allowed: {', '.join(allowed)}"
            )


def _clean_value(field: str, value: Any) -> Any:
    if field == "amount":
        return coerce_amount(value)
    return "" if value is None else str(value)


def add_entry(
    record: MonthlyRecord,
    config: AppConfig,
    entry_type: EntryType,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
    **fields: Any,
) -> MonthlyRecord:
    """Append a new entry (fresh id) of the given type."""
    entry_type = EntryType(entry_type)
    _check_fields(entry_type, fields)
    attr, model, _ = _ENTRY_KINDS[entry_type]
    entry = model(**{name: _clean_value(name, value) for name, value in fields.items()})
    entries = list(getattr(record, attr)) + [entry]
    return _commit(record, config, is_first_creation, now, **{attr: entries})


def update_entry(
    record: MonthlyRecord,
    config: AppConfig,
    entry_type: EntryType,
    entry_id: str,
    field: str,
    value: Any,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    """Set one field of the entry with `entry_id`. No-op if the id is unknown."""
    entry_type = EntryType(entry_type)
    _check_fields(entry_type, [field])
    attr, model, _ = _ENTRY_KINDS[entry_type]
    entries = list(getattr(record, attr))

    for position, entry in enumerate(entries):
        if entry.id == entry_id:
            data = entry.model_dump()
            data[field] = _clean_value(field, value)
            entries[position] = model.model_validate(data)
            return _commit(record, config, is_first_creation, now, **{attr: entries})

    return record


def remove_entry(
    record: MonthlyRecord,
    config: AppConfig,
    entry_type: EntryType,
    entry_id: str,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    """Drop the entry with `entry_id`. No-op if the id is unknown."""
    attr = _ENTRY_KINDS[EntryType(entry_type)][0]
    entries = getattr(record, attr)
    remaining = [entry for entry in entries if entry.id != entry_id]
    if len(remaining) == len(entries):
        return record
    return _commit(record, config, is_first_creation, now, **{attr: remaining})


# =============================================================================
# CONTRIBUTIONS / OTHER INCOME / EXPENSES
# =============================================================================

def add_contribution(
    record: MonthlyRecord,
    config: AppConfig,
    given_name: str = "",
    family_name: str = "",
    amount: Any = 0,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return add_entry(
        record, config, EntryType.CONTRIBUTION,
        is_first_creation=is_first_creation, now=now,
        given_name=given_name, family_name=family_name, amount=amount,
    )


def update_contribution(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    field: str,
    value: Any,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return update_entry(
        record, config, EntryType.CONTRIBUTION, entry_id, field, value,
        is_first_creation=is_first_creation, now=now,
    )


def remove_contribution(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return remove_entry(
        record, config, EntryType.CONTRIBUTION, entry_id,
        is_first_creation=is_first_creation, now=now,
    )


def add_other_income(
    record: MonthlyRecord,
    config: AppConfig,
    source: str = "",
    amount: Any = 0,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return add_entry(
        record, config, EntryType.OTHER_INCOME,
        is_first_creation=is_first_creation, now=now,
        source=source, amount=amount,
    )


def update_other_income(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    field: str,
    value: Any,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return update_entry(
        record, config, EntryType.OTHER_INCOME, entry_id, field, value,
        is_first_creation=is_first_creation, now=now,
    )


def remove_other_income(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return remove_entry(
        record, config, EntryType.OTHER_INCOME, entry_id,
        is_first_creation=is_first_creation, now=now,
    )


def add_expense(
    record: MonthlyRecord,
    config: AppConfig,
    label: str = "",
    amount: Any = 0,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return add_entry(
        record, config, EntryType.EXPENSE,
        is_first_creation=is_first_creation, now=now,
        label=label, amount=amount,
    )


def update_expense(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    field: str,
    value: Any,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return update_entry(
        record, config, EntryType.EXPENSE, entry_id, field, value,
        is_first_creation=is_first_creation, now=now,
    )


def remove_expense(
    record: MonthlyRecord,
    config: AppConfig,
    entry_id: str,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    return remove_entry(
        record, config, EntryType.EXPENSE, entry_id,
        is_first_creation=is_first_creation, now=now,
    )


# =============================================================================
# FUND BALANCES
# =============================================================================

def set_prior_balance(
    record: MonthlyRecord,
    config: AppConfig,
    fund: Union[FundKey, str],
    value: Any,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    """Set one fund's balance before this month. The new balance follows."""
    fund = FundKey(fund)
    states = dict(record.allocation.items())
    states[fund] = FundState(
        prior_balance=coerce_amount(value, allow_negative=True),
        new_balance=states[fund].new_balance,
    )
    allocation = FundAllocation.from_states(states)
    return _commit(record, config, is_first_creation, now, allocation=allocation)


def carry_forward(
    previous: MonthlyRecord,
    record: MonthlyRecord,
    config: AppConfig,
    *,
    is_first_creation: bool = False,
    now: Optional[datetime] = None,
) -> MonthlyRecord:
    """
    Start `record`'s funds where `previous` left them.

    Copies every new balance of `previous` into the prior balances of
    `record`, then recomputes. Balances are never chained implicitly; this
    is the explicit opt-in step.
    """
    states = {
        fund: FundState(prior_balance=state.new_balance)
        for fund, state in previous.allocation.items()
    }
    allocation = FundAllocation.from_states(states)
    return _commit(record, config, is_first_creation, now, allocation=allocation)
