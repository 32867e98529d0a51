"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the cloud backend; the in-memory backend serves tests and
unconfigured local runs.
"""

from finance_dashboard.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    SnapshotCallback,
    StorageConnectionError,
    StorageError,
    Subscription,
)
from finance_dashboard.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
)
from finance_dashboard.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
)
from finance_dashboard.services.storage.snapshots import SnapshotHub

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinanceStorageInterface",
    "SnapshotCallback",
    "Subscription",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStorage",
    "SnapshotHub",
]
