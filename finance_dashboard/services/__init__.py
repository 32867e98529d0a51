"""Services package."""

from finance_dashboard.services.bank_import import BankImportError, parse_bank_payload
from finance_dashboard.services.export import build_report, export_transactions_csv
from finance_dashboard.services.notifications import (
    BudgetAlertService,
    LoggingNotifier,
    NotifierInterface,
)
from finance_dashboard.services.rates import ExchangeRateError, ExchangeRateService
from finance_dashboard.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Bank import
    "BankImportError",
    "parse_bank_payload",
    # Export
    "build_report",
    "export_transactions_csv",
    # Notifications
    "BudgetAlertService",
    "LoggingNotifier",
    "NotifierInterface",
    # Exchange rates
    "ExchangeRateError",
    "ExchangeRateService",
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "FinanceStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStorage",
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
]
