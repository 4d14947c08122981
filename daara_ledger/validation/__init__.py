"""Validation package."""

from daara_ledger.validation.validator import ConfigValidator

__all__ = ["ConfigValidator"]
