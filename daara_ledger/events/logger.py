"""
Event Logger

Every ledger mutation, configuration change and storage failure is written
to a structured JSON log through structlog. The log is for debugging and
support; the application never reads it back and never persists it
anywhere itself.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from daara_ledger.models.events import LedgerEvent, LedgerEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the structured log to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class EventLogger:
    """
    Central event logging service.
    """

    def __init__(self, name: str = "daara_ledger"):
        self._logger = structlog.get_logger(name)

    def log(self, event: LedgerEvent) -> None:
        """Write one event at the level matching its severity."""
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity == "error":
            self._logger.error("ledger_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("ledger_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_record_created(self, record_key: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(LedgerEventBuilder.record_created(record_key, correlation_id))

    def log_record_deleted(self, record_key: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(LedgerEventBuilder.record_deleted(record_key, correlation_id))

    def log_entry_added(
        self,
        record_key: str,
        entry_type: str,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.entry_added(record_key, entry_type, entry_id, correlation_id))

    def log_entry_updated(
        self,
        record_key: str,
        entry_type: str,
        entry_id: str,
        field: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.entry_updated(
            record_key, entry_type, entry_id, field, correlation_id
        ))

    def log_entry_removed(
        self,
        record_key: str,
        entry_type: str,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.entry_removed(record_key, entry_type, entry_id, correlation_id))

    def log_prior_balance_set(
        self,
        record_key: str,
        fund: str,
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.prior_balance_set(record_key, fund, value, correlation_id))

    def log_balances_carried_forward(
        self,
        record_key: str,
        source_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.balances_carried_forward(record_key, source_key, correlation_id))

    def log_config_saved(
        self,
        percent_total: int,
        warnings: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.config_saved(percent_total, warnings, correlation_id))

    def log_member_added(self, full_name: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(LedgerEventBuilder.member_added(full_name, correlation_id))

    def log_member_removed(self, full_name: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(LedgerEventBuilder.member_removed(full_name, correlation_id))

    def log_data_loaded(self, record_count: int, from_storage: bool) -> None:
        self.log(LedgerEventBuilder.data_loaded(record_count, from_storage))

    def log_filters_saved(self, year: str, month: str, member: str) -> None:
        self.log(LedgerEventBuilder.filters_saved(year, month, member))

    def log_storage_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.storage_failed(operation, error_message, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action and pass it through every
    event that action produces.
    """
    return uuid4()
