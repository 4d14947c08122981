"""Query execution package."""

from daara_ledger.queries.executor import (
    LedgerQueryExecutor,
    chronological_key,
    member_roster,
)

__all__ = ["LedgerQueryExecutor", "chronological_key", "member_roster"]
