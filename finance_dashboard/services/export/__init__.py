"""Export services package."""

from finance_dashboard.services.export.exporters import (
    CSV_COLUMNS,
    REPORT_TITLE,
    build_report,
    export_transactions_csv,
)

__all__ = [
    "CSV_COLUMNS",
    "REPORT_TITLE",
    "build_report",
    "export_transactions_csv",
]
