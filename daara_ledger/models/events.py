"""
Operation Event Models for Daara Ledger

Every user action that changes the ledger is described by a LedgerEvent
and written to the structured log. Events are log lines only: they are
never persisted by the application and never read back.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEventType(str, Enum):
    """Types of events we log."""
    # Monthly records
    RECORD_CREATED = "record_created"
    RECORD_DELETED = "record_deleted"

    # Entries
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_REMOVED = "entry_removed"

    # Funds
    PRIOR_BALANCE_SET = "prior_balance_set"
    BALANCES_CARRIED_FORWARD = "balances_carried_forward"

    # Configuration
    CONFIG_SAVED = "config_saved"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"

    # Persistence
    DATA_LOADED = "data_loaded"
    FILTERS_SAVED = "filters_saved"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"


class EventSeverity(str, Enum):
    """Severity level for events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single operation event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=_utcnow)

    event_type: LedgerEventType
    severity: EventSeverity = EventSeverity.INFO

    # Which record the event is about, e.g. '2024-Janvier'
    record_key: Optional[str] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "record_key": self.record_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build events with common patterns.

    Usage:
        event = LedgerEventBuilder.entry_added("2024-Janvier", "contribution", entry_id)
        event = LedgerEventBuilder.record_deleted("2024-Janvier")
    """

    @staticmethod
    def record_created(
        record_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.RECORD_CREATED,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"Monthly record created: {record_key}",
        )

    @staticmethod
    def record_deleted(
        record_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.RECORD_DELETED,
            severity=EventSeverity.WARNING,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"Monthly record deleted: {record_key}",
        )

    @staticmethod
    def entry_added(
        record_key: str,
        entry_type: str,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_ADDED,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"{entry_type} added to {record_key}",
            details={"entry_type": entry_type, "entry_id": entry_id},
        )

    @staticmethod
    def entry_updated(
        record_key: str,
        entry_type: str,
        entry_id: str,
        field: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_UPDATED,
            severity=EventSeverity.DEBUG,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"{entry_type} {field} updated in {record_key}",
            details={"entry_type": entry_type, "entry_id": entry_id, "field": field},
        )

    @staticmethod
    def entry_removed(
        record_key: str,
        entry_type: str,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_REMOVED,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"{entry_type} removed from {record_key}",
            details={"entry_type": entry_type, "entry_id": entry_id},
        )

    @staticmethod
    def prior_balance_set(
        record_key: str,
        fund: str,
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PRIOR_BALANCE_SET,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"Prior balance of {fund} set to {value} in {record_key}",
            details={"fund": fund, "prior_balance": value},
        )

    @staticmethod
    def balances_carried_forward(
        record_key: str,
        source_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BALANCES_CARRIED_FORWARD,
            record_key=record_key,
            correlation_id=correlation_id,
            description=f"Fund balances carried from {source_key} to {record_key}",
            details={"source_key": source_key},
        )

    @staticmethod
    def config_saved(
        percent_total: int,
        warnings: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CONFIG_SAVED,
            severity=EventSeverity.WARNING if warnings else EventSeverity.INFO,
            correlation_id=correlation_id,
            description=f"Configuration saved (split total {percent_total}%)",
            details={"percent_total": percent_total, "warnings": warnings},
        )

    @staticmethod
    def member_added(
        full_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MEMBER_ADDED,
            correlation_id=correlation_id,
            description=f"Member added: {full_name}",
            details={"member": full_name},
        )

    @staticmethod
    def member_removed(
        full_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MEMBER_REMOVED,
            correlation_id=correlation_id,
            description=f"Member removed: {full_name}",
            details={"member": full_name},
        )

    @staticmethod
    def data_loaded(
        record_count: int,
        from_storage: bool,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.DATA_LOADED,
            description=(
                f"Loaded {record_count} monthly records"
                if from_storage
                else "No saved data, starting from initial configuration"
            ),
            details={"record_count": record_count, "from_storage": from_storage},
        )

    @staticmethod
    def filters_saved(
        year: str,
        month: str,
        member: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FILTERS_SAVED,
            description="Browsing filters saved",
            details={"year": year, "month": month, "member": member},
        )

    @staticmethod
    def storage_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        event_type = (
            LedgerEventType.LOAD_FAILED
            if operation == "load"
            else LedgerEventType.SAVE_FAILED
        )
        return LedgerEvent(
            event_type=event_type,
            severity=EventSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Storage {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )
