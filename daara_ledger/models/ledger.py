"""
Core Data Models for Daara Ledger

These models define the schemas for everything the ledger stores or derives:
1. Ledger entries (contributions, other income, expenses)
2. The three reserve funds and their balances
3. One month's record and the root aggregate that holds every month
4. Value objects returned by queries, validation and reports

Amounts are Decimal throughout. Bad numeric input is coerced to zero at
the model boundary, so a half-filled form never fails validation.

Legacy blobs written by the original browser tool use camelCase/French keys
(cotisations, prenom, montant, repartition, ...). Every field accepts its
legacy key as a validation alias; output always uses the field names.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Union
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from daara_ledger.models.amounts import ZERO, coerce_amount, coerce_percent


def _signed_amount(value) -> Decimal:
    return coerce_amount(value, allow_negative=True)


# Entry amounts: non-negative, garbage becomes 0
Amount = Annotated[Decimal, BeforeValidator(coerce_amount)]
# Fund balances: signed, garbage becomes 0
Balance = Annotated[Decimal, BeforeValidator(_signed_amount)]
Percent = Annotated[int, BeforeValidator(coerce_percent)]


def _aliases(name: str, legacy: str) -> AliasChoices:
    return AliasChoices(name, legacy)


def new_entry_id() -> str:
    """Opaque identifier for a ledger entry."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Month(str, Enum):
    """
    The twelve canonical months, in calendar order.

    Values are the names the Daara uses on its reports and in record keys.
    Declaration order is the chronological order used for sorting.
    """
    JANUARY = "Janvier"
    FEBRUARY = "Février"
    MARCH = "Mars"
    APRIL = "Avril"
    MAY = "Mai"
    JUNE = "Juin"
    JULY = "Juillet"
    AUGUST = "Août"
    SEPTEMBER = "Septembre"
    OCTOBER = "Octobre"
    NOVEMBER = "Novembre"
    DECEMBER = "Décembre"

    @property
    def position(self) -> int:
        """Zero-based position in the calendar (January = 0)."""
        return MONTHS.index(self.value)

    @property
    def short_label(self) -> str:
        return self.value[:3]


MONTHS: list[str] = [m.value for m in Month]


def month_index(month: Union[Month, str]) -> int:
    """Calendar index of a month name. Raises ValueError for unknown names."""
    return Month(month).position


class FundKey(str, Enum):
    """The three reserve funds. The set is closed."""
    RENOVATION = "renovation"
    SOCIAL = "social"
    BOARD = "board"

    @property
    def label(self) -> str:
        return FUND_LABELS[self]


FUND_LABELS = {
    FundKey.RENOVATION: "Caisse Rénovation",
    FundKey.SOCIAL: "Caisse Sociale",
    FundKey.BOARD: "Comité Directeur",
}


class EntryType(str, Enum):
    """Kinds of line items a month can hold."""
    CONTRIBUTION = "contribution"
    OTHER_INCOME = "other_income"
    EXPENSE = "expense"

    @property
    def label(self) -> str:
        return ENTRY_TYPE_LABELS[self]


ENTRY_TYPE_LABELS = {
    EntryType.CONTRIBUTION: "Cotisation",
    EntryType.OTHER_INCOME: "Autre Recette",
    EntryType.EXPENSE: "Dépense",
}


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class Contribution(BaseModel):
    """A named member's monthly payment (cotisation)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_entry_id)
    given_name: str = Field(default="", validation_alias=_aliases("given_name", "prenom"))
    family_name: str = Field(default="", validation_alias=_aliases("family_name", "nom"))
    amount: Amount = Field(default=ZERO, validation_alias=_aliases("amount", "montant"))

    @property
    def full_name(self) -> str:
        return f"{self.given_name} {self.family_name}"


class OtherIncome(BaseModel):
    """Non-member income with a free-text source label (autre somme)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_entry_id)
    source: str = ""
    amount: Amount = Field(default=ZERO, validation_alias=_aliases("amount", "montant"))


class Expense(BaseModel):
    """An outgoing payment (dépense)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_entry_id)
    label: str = Field(default="", validation_alias=_aliases("label", "designation"))
    amount: Amount = Field(default=ZERO, validation_alias=_aliases("amount", "total"))


# =============================================================================
# FUND ALLOCATION
# =============================================================================

class FundState(BaseModel):
    """
    One fund's balance before and after the month's allocation.

    new_balance is derived (prior + share of net). Only the allocation
    engine writes it.
    """

    prior_balance: Balance = Field(
        default=ZERO,
        validation_alias=_aliases("prior_balance", "ancienSolde"),
    )
    new_balance: Balance = Field(
        default=ZERO,
        validation_alias=_aliases("new_balance", "nouveauSolde"),
    )


_FUND_FIELDS = {
    FundKey.RENOVATION: "renovation_fund",
    FundKey.SOCIAL: "social_fund",
    FundKey.BOARD: "board_fund",
}


class FundAllocation(BaseModel):
    """The three reserve funds of one month (répartition)."""

    renovation_fund: FundState = Field(
        default_factory=FundState,
        validation_alias=_aliases("renovation_fund", "caisseRenovation"),
    )
    social_fund: FundState = Field(
        default_factory=FundState,
        validation_alias=_aliases("social_fund", "caisseSociale"),
    )
    board_fund: FundState = Field(
        default_factory=FundState,
        validation_alias=_aliases("board_fund", "comiteDirecteur"),
    )

    def fund(self, key: Union[FundKey, str]) -> FundState:
        return getattr(self, _FUND_FIELDS[FundKey(key)])

    def items(self) -> list[tuple[FundKey, FundState]]:
        return [(key, self.fund(key)) for key in FundKey]

    def prior_balances(self) -> dict[FundKey, Decimal]:
        return {key: state.prior_balance for key, state in self.items()}

    def new_balances(self) -> dict[FundKey, Decimal]:
        return {key: state.new_balance for key, state in self.items()}

    @classmethod
    def from_states(cls, states: dict[FundKey, FundState]) -> "FundAllocation":
        return cls(**{_FUND_FIELDS[key]: state for key, state in states.items()})


# =============================================================================
# MONTHLY RECORD
# =============================================================================

class MonthlyRecord(BaseModel):
    """
    One month's financial truth.

    The allocation is always consistent with the entry lists, the funds'
    prior balances and the percentages that were configured at the last
    recompute. Never edit it directly; go through the ledger engine.
    """

    month: Month
    year: int

    contributions: list[Contribution] = Field(
        default_factory=list,
        validation_alias=_aliases("contributions", "cotisations"),
    )
    other_income: list[OtherIncome] = Field(
        default_factory=list,
        validation_alias=_aliases("other_income", "autresSommes"),
    )
    expenses: list[Expense] = Field(
        default_factory=list,
        validation_alias=_aliases("expenses", "depenses"),
    )
    allocation: FundAllocation = Field(
        default_factory=FundAllocation,
        validation_alias=_aliases("allocation", "repartition"),
    )

    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_aliases("created_at", "createdAt"),
        description="Set once, when the month is first edited",
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_aliases("updated_at", "updatedAt"),
        description="Set on every mutation",
    )

    @property
    def key(self) -> str:
        """Store key: year and month name, e.g. '2024-Janvier'."""
        return f"{self.year}-{self.month.value}"

    @property
    def month_index(self) -> int:
        return self.month.position

    @property
    def period(self) -> str:
        return f"{self.month.value} {self.year}"


# =============================================================================
# CONFIGURATION & ROOT AGGREGATE
# =============================================================================

class Member(BaseModel):
    """A registered member of the Daara."""
    model_config = ConfigDict(str_strip_whitespace=True)

    given_name: str = Field(default="", validation_alias=_aliases("given_name", "prenom"))
    family_name: str = Field(default="", validation_alias=_aliases("family_name", "nom"))

    @property
    def full_name(self) -> str:
        return f"{self.given_name} {self.family_name}"


class AppConfig(BaseModel):
    """
    Organization details, the fund split and the member roster.

    The three percentages are independent. Their sum is shown to the
    operator but never enforced: 110% or 90% are accepted as-is.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    location: str = ""
    phone: str = ""
    email: str = ""
    logo_ref: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("logo_ref", "logo"),
        description="Logo reference (data URL or file path)",
    )

    renovation_percent: Percent = Field(
        default=0,
        validation_alias=_aliases("renovation_percent", "defaultRenovationPercent"),
    )
    social_percent: Percent = Field(
        default=0,
        validation_alias=_aliases("social_percent", "defaultSocialePercent"),
    )
    board_percent: Percent = Field(
        default=0,
        validation_alias=_aliases("board_percent", "defaultComitePercent"),
    )

    members: list[Member] = Field(default_factory=list)

    @field_validator("location", "phone", "email", mode="before")
    @classmethod
    def none_as_blank(cls, v):
        return "" if v is None else v

    def percent_for(self, fund: Union[FundKey, str]) -> int:
        fund = FundKey(fund)
        if fund is FundKey.RENOVATION:
            return self.renovation_percent
        if fund is FundKey.SOCIAL:
            return self.social_percent
        return self.board_percent

    def percents(self) -> dict[FundKey, int]:
        return {key: self.percent_for(key) for key in FundKey}

    @property
    def percent_total(self) -> int:
        return self.renovation_percent + self.social_percent + self.board_percent


class AppData(BaseModel):
    """
    The single root aggregate: every monthly record plus the configuration.

    Records are keyed by '<year>-<month name>'. The aggregate is replaced
    and persisted as one unit.
    """

    records: dict[str, MonthlyRecord] = Field(default_factory=dict)
    config: AppConfig = Field(default_factory=AppConfig)

    @model_validator(mode="after")
    def validate_record_keys(self) -> "AppData":
        """Each record must sit under its own (year, month) key."""
        for key, record in self.records.items():
            if key != record.key:
                raise ValueError(
                    f"Record stored under '{key}' belongs to '{record.key}'"
                )
        return self


# =============================================================================
# QUERY MODELS
# =============================================================================

ALL = "all"


class BrowserFilters(BaseModel):
    """
    Browsing filters. Each one is either "all" or a concrete value.

    year is kept as a string, as it comes from a select box.
    """

    year: str = ALL
    month: str = ALL
    member: str = ALL

    @field_validator("year", "month", "member", mode="before")
    @classmethod
    def normalize(cls, v) -> str:
        if v is None:
            return ALL
        if isinstance(v, Month):
            return v.value
        text = str(v).strip()
        return text or ALL

    @property
    def is_unfiltered(self) -> bool:
        return self.year == ALL and self.month == ALL and self.member == ALL


class SelectionTotals(BaseModel):
    """Sums over a selection of months. net may be negative."""

    contributions: Decimal = ZERO
    other: Decimal = ZERO
    received: Decimal = ZERO
    expenses: Decimal = ZERO
    net: Decimal = ZERO


class FundBalances(BaseModel):
    """Current balance of each fund."""

    renovation: Decimal = ZERO
    social: Decimal = ZERO
    board: Decimal = ZERO

    def get(self, fund: Union[FundKey, str]) -> Decimal:
        return getattr(self, FundKey(fund).value)


class MonthSummary(BaseModel):
    """One bar of the dashboard chart."""

    month: Month
    label: str
    received: Decimal = ZERO
    expenses: Decimal = ZERO
    net: Decimal = ZERO
    has_record: bool = False


class SearchHit(BaseModel):
    """A single entry matching a free-text search."""

    entry_type: EntryType
    entry_id: str
    name: str
    amount: Decimal
    month: Month
    year: int

    @property
    def period(self) -> str:
        return f"{self.month.value} {self.year}"


class SelectionResult(BaseModel):
    """Result of browsing with a set of filters."""

    filters: BrowserFilters
    records: list[MonthlyRecord] = Field(default_factory=list)
    totals: SelectionTotals = Field(default_factory=SelectionTotals)
    balances: FundBalances = Field(default_factory=FundBalances)

    @property
    def data_found(self) -> bool:
        return len(self.records) > 0

    @property
    def result_count(self) -> int:
        return len(self.records)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'percent_total', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Outcome of checking configuration input.

    Warnings are surfaced to the operator and never block a save.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# REPORT MODELS
# =============================================================================

class MonthReport(BaseModel):
    """One month's section of the detailed report."""

    record: MonthlyRecord
    total_contributions: Decimal
    total_other_income: Decimal
    total_received: Decimal
    total_expenses: Decimal
    net_monthly: Decimal


class DetailedReport(BaseModel):
    """Printable report over a selection of months, most recent first."""

    generated_at: datetime
    organization: str
    location: str = ""
    phone: str = ""
    email: str = ""
    currency: str
    filters: BrowserFilters
    months: list[MonthReport] = Field(default_factory=list)
    totals: SelectionTotals = Field(default_factory=SelectionTotals)
    balances: FundBalances = Field(default_factory=FundBalances)
    percents: dict[FundKey, int] = Field(default_factory=dict)
