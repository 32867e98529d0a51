"""
Data Models Package

This package contains all Pydantic models used by the finance dashboard.
All data flowing through the system must conform to these schemas.
"""

from finance_dashboard.models.finance import (
    BudgetAlert,
    Budgets,
    DashboardSummary,
    ExchangeRates,
    Goal,
    Insight,
    Investment,
    Preferences,
    RecordState,
    RecurrenceInterval,
    RecurrenceRule,
    SnapshotCollection,
    Theme,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from finance_dashboard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "BudgetAlert",
    "Budgets",
    "DashboardSummary",
    "ExchangeRates",
    "Goal",
    "Insight",
    "Investment",
    "Preferences",
    "RecordState",
    "RecurrenceInterval",
    "RecurrenceRule",
    "SnapshotCollection",
    "Theme",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
