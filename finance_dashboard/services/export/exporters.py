"""
Transaction export.

CSV export writes every transaction the user sees. The report builder
produces the text content of the printable finance report; laying it out
as a PDF page is left to the caller's renderer.
"""

import csv
import io
from datetime import datetime
from typing import Iterable

from finance_dashboard.engine.formatting import format_amount
from finance_dashboard.engine.insights import total
from finance_dashboard.models.finance import Preferences, Transaction, TransactionType

CSV_COLUMNS = ["id", "type", "amount", "currency", "category", "note", "date"]
REPORT_TITLE = "Personal Finance Report"
REPORT_RECENT_TRANSACTIONS = 20


def export_transactions_csv(
    transactions: Iterable[Transaction],
    default_currency: str = "INR",
) -> str:
    """
    Render transactions as CSV text.

    The header row is bare; every data field is quoted with embedded quotes
    doubled. Rows are separated by a newline with none after the last row.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for tx in transactions:
        writer.writerow([
            str(tx.id),
            tx.type.value,
            str(tx.amount),
            tx.currency or default_currency,
            tx.category,
            tx.note or "",
            tx.date.isoformat(),
        ])
    body = buffer.getvalue()
    # Quoted rows always end in '"', so this strips only the last terminator
    if body.endswith("\n"):
        body = body[:-1]
    header = ",".join(CSV_COLUMNS)
    return f"{header}\n{body}" if body else header


def build_report(
    transactions: list[Transaction],
    preferences: Preferences,
    generated_at: datetime,
    recent_count: int = REPORT_RECENT_TRANSACTIONS,
) -> list[str]:
    """
    Lines of the finance report, top to bottom.

    Totals cover every transaction passed in. The recent section lists the
    first recent_count transactions in the given order (storage hands them
    over newest first).
    """
    currency = preferences.currency
    income = total(transactions, TransactionType.INCOME)
    expense = total(transactions, TransactionType.EXPENSE)

    lines = [
        REPORT_TITLE,
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}",
        "",
        "Summary",
        f"Total income: {format_amount(income, currency)}",
        f"Total expense: {format_amount(expense, currency)}",
        f"Net: {format_amount(income - expense, currency)}",
        "",
        "Recent transactions",
    ]
    for tx in transactions[:recent_count]:
        lines.append(
            f"{tx.date.isoformat()} | {tx.type.value} | {tx.category} | "
            f"{format_amount(tx.amount, currency)} | {tx.note or ''}"
        )
    return lines
