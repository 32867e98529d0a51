"""
Budget Alert Evaluator

Finds budgeted categories whose spending in the current month is above
the alert threshold. Sending the notification is done by
BudgetAlertService; this module only decides which alerts are due.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Union

from finance_dashboard.engine.formatting import round_half_up
from finance_dashboard.models.finance import (
    BudgetAlert,
    Transaction,
    TransactionType,
)

ALERT_THRESHOLD = 0.9


def month_key(d: date) -> str:
    """YYYY-MM key of the month containing d."""
    return d.strftime("%Y-%m")


def month_to_date_spending(
    transactions: Iterable[Transaction],
    month: str,
) -> dict[str, Decimal]:
    """Active expense totals per category for one YYYY-MM month."""
    spending: dict[str, Decimal] = {}
    for tx in transactions:
        if not tx.is_active or tx.type != TransactionType.EXPENSE:
            continue
        if tx.month_key != month:
            continue
        spending[tx.category] = spending.get(tx.category, Decimal("0")) + tx.amount
    return spending


def due_alerts(
    transactions: Iterable[Transaction],
    budgets: Mapping[str, Union[Decimal, int, float]],
    current_month: Union[str, date],
    *,
    threshold: float = ALERT_THRESHOLD,
) -> list[BudgetAlert]:
    """
    Alerts for every budgeted category with spent / limit > threshold.

    Categories without a budget never alert, and neither do budgets with
    a zero limit. Alerts follow the order of the budgets mapping.
    """
    if isinstance(current_month, date):
        current_month = month_key(current_month)

    spending = month_to_date_spending(transactions, current_month)
    ratio = Decimal(str(threshold))

    alerts = []
    for category, raw_limit in budgets.items():
        limit = Decimal(str(raw_limit))
        if limit <= 0:
            continue
        spent = spending.get(category, Decimal("0"))
        if spent / limit > ratio:
            alerts.append(BudgetAlert(
                category=category,
                percent_spent=round_half_up(spent * 100 / limit),
                spent=spent,
                limit=limit,
            ))
    return alerts
