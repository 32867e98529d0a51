"""
Recurrence Projector

Computes the next dated occurrence of a recurring template transaction.
Materializing the occurrence into storage is the caller's job.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import uuid4

from finance_dashboard.models.finance import (
    RecordState,
    RecurrenceInterval,
    Transaction,
)


def add_months(d: date, n: int) -> date:
    """Add n months to d, clamping the day to the end of the target month."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def advance_date(d: date, interval: RecurrenceInterval) -> date:
    """Advance d by exactly one unit of interval."""
    if interval == RecurrenceInterval.DAILY:
        return d + timedelta(days=1)
    if interval == RecurrenceInterval.WEEKLY:
        return d + timedelta(weeks=1)
    if interval == RecurrenceInterval.MONTHLY:
        return add_months(d, 1)
    if interval == RecurrenceInterval.YEARLY:
        return add_months(d, 12)
    raise ValueError(f"Unsupported interval: {interval}")


def next_occurrence(template: Transaction) -> Optional[Transaction]:
    """
    Project the next occurrence of a recurring transaction.

    Returns None when the template has no recurrence rule, when its
    interval is not recognized, or when the next date falls after the
    rule's end date. The end date itself is still a valid occurrence date.

    The returned transaction copies type, amount, category, note, currency
    and the recurrence rule, gets a fresh id and is not yet stored.
    """
    rule = template.recurrence
    if rule is None:
        return None

    interval = rule.known_interval
    if interval is None:
        return None

    candidate = advance_date(template.date, interval)
    if rule.end_date is not None and candidate > rule.end_date:
        return None

    return template.model_copy(
        update={
            "id": uuid4(),
            "date": candidate,
            "state": RecordState.ACTIVE,
            "created_at": datetime.utcnow(),
        },
        deep=True,
    )
