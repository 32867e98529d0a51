"""
Insight and Forecast Engine

Rule-based insights computed from a transaction snapshot:
1. Top spending category in the trailing window
2. Savings rate in the trailing window
3. Overspend warning when expenses approach income
4. Monthly net forecast (mean of all historical monthly nets)

Everything here is DETERMINISTIC. The evaluation date is always passed in;
nothing reads the wall clock. Input order is not assumed to be sorted.
Amounts are summed as raw numbers whatever their currency.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from finance_dashboard.engine.formatting import format_amount, round_half_up
from finance_dashboard.models.finance import (
    Insight,
    Preferences,
    Transaction,
    TransactionType,
)

WINDOW_DAYS = 30
OVERSPEND_RATIO = 0.8

TOP_SPEND_ID = "top-spend"
SAVINGS_RATE_ID = "save-rate"
HIGH_EXPENSE_ID = "high-expense"
FORECAST_ID = "forecast"


def active_only(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if tx.is_active]


def in_window(
    transactions: Iterable[Transaction],
    as_of: date,
    window_days: int = WINDOW_DAYS,
) -> list[Transaction]:
    """Transactions dated on or after as_of - window_days."""
    start = as_of - timedelta(days=window_days)
    return [tx for tx in transactions if tx.date >= start]


def total(transactions: Iterable[Transaction], tx_type: TransactionType) -> Decimal:
    return sum(
        (tx.amount for tx in transactions if tx.type == tx_type),
        Decimal("0"),
    )


def spending_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Expense totals per category, in first-encountered order."""
    spending: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        spending[tx.category] = spending.get(tx.category, Decimal("0")) + tx.amount
    return spending


def top_category(spending: dict[str, Decimal]) -> Optional[tuple[str, Decimal]]:
    """
    Category with the strictly largest total.

    Ties keep the category that was encountered first.
    """
    best = None
    for category, amount in spending.items():
        if best is None or amount > best[1]:
            best = (category, amount)
    return best


def savings_rate(income: Decimal, expense: Decimal) -> Optional[int]:
    """Percentage of income retained, or None when there is no income."""
    if not income:
        return None
    return round_half_up((income - expense) * 100 / income)


def monthly_nets(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Net (income - expense) per YYYY-MM month."""
    nets: dict[str, Decimal] = {}
    for tx in transactions:
        signed = tx.amount if tx.type == TransactionType.INCOME else -tx.amount
        nets[tx.month_key] = nets.get(tx.month_key, Decimal("0")) + signed
    return nets


def forecast_monthly_net(transactions: Iterable[Transaction]) -> int:
    """Mean of all observed monthly nets, rounded half-up; 0 without history."""
    nets = list(monthly_nets(transactions).values())
    if not nets:
        return 0
    return round_half_up(sum(nets, Decimal("0")) / len(nets))


def compute_insights(
    transactions: Iterable[Transaction],
    preferences: Preferences,
    as_of: date,
    *,
    window_days: int = WINDOW_DAYS,
    overspend_ratio: float = OVERSPEND_RATIO,
) -> list[Insight]:
    """
    Compute the ordered insight list for a snapshot.

    Order is fixed: top category, savings rate, overspend warning (each
    only when applicable), then the forecast, which is always present.
    Deleted transactions are ignored.
    """
    history = active_only(transactions)
    recent = in_window(history, as_of, window_days)
    currency = preferences.currency

    income = total(recent, TransactionType.INCOME)
    expense = total(recent, TransactionType.EXPENSE)

    items: list[Insight] = []

    top = top_category(spending_by_category(recent))
    if top is not None:
        category, amount = top
        items.append(Insight(
            id=TOP_SPEND_ID,
            text=(
                f"Top spending category last {window_days} days: "
                f"{category} ({format_amount(amount, currency)})"
            ),
        ))

    rate = savings_rate(income, expense)
    if rate is not None:
        items.append(Insight(
            id=SAVINGS_RATE_ID,
            text=f"Savings rate last {window_days} days: {rate}%",
        ))

    ratio = Decimal(str(overspend_ratio))
    if expense > income * ratio:
        items.append(Insight(
            id=HIGH_EXPENSE_ID,
            text=(
                f"Warning: Expenses are >{round_half_up(ratio * 100)}% "
                f"of income last {window_days} days."
            ),
        ))

    forecast = forecast_monthly_net(history)
    items.append(Insight(
        id=FORECAST_ID,
        text=f"Projected monthly net (simple average): {format_amount(forecast, currency)}",
    ))

    return items
