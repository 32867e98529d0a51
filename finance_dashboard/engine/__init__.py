"""
Computation engine package.

Pure functions over in-memory snapshots. No I/O, no clock access.
"""

from finance_dashboard.engine.alerts import due_alerts, month_key
from finance_dashboard.engine.formatting import format_amount, round_half_up
from finance_dashboard.engine.insights import compute_insights, forecast_monthly_net
from finance_dashboard.engine.recurrence import advance_date, next_occurrence
from finance_dashboard.engine.summary import net_worth, summarize

__all__ = [
    "advance_date",
    "compute_insights",
    "due_alerts",
    "forecast_monthly_net",
    "format_amount",
    "month_key",
    "net_worth",
    "next_occurrence",
    "round_half_up",
    "summarize",
]
