"""Summary panel totals and investment net worth."""

from decimal import Decimal
from typing import Iterable, Optional

from finance_dashboard.engine.insights import active_only, total
from finance_dashboard.models.finance import (
    DashboardSummary,
    Goal,
    Investment,
    Transaction,
    TransactionType,
)


def net_worth(investments: Iterable[Investment]) -> Decimal:
    """Sum of market values of all holdings."""
    return sum((inv.market_value for inv in investments), Decimal("0"))


def next_goal(goals: Iterable[Goal]) -> Optional[Goal]:
    """Goal with the earliest deadline."""
    ordered = sorted(goals, key=lambda g: g.deadline)
    return ordered[0] if ordered else None


def summarize(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal] = (),
    investments: Iterable[Investment] = (),
) -> DashboardSummary:
    """All-time income, expense and net over active transactions."""
    history = active_only(transactions)
    income = total(history, TransactionType.INCOME)
    expense = total(history, TransactionType.EXPENSE)
    return DashboardSummary(
        income=income,
        expense=expense,
        net=income - expense,
        next_goal=next_goal(goals),
        net_worth=net_worth(investments),
    )
