"""Input validation package."""

from finance_dashboard.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
