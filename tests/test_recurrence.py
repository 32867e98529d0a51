"""Tests for next-occurrence projection."""

from datetime import date
from decimal import Decimal

import pytest

from finance_dashboard.engine.recurrence import add_months, advance_date, next_occurrence
from finance_dashboard.models.finance import (
    RecordState,
    RecurrenceInterval,
    RecurrenceRule,
    Transaction,
    TransactionType,
)


def make_template(tx_date=date(2024, 1, 15), interval="monthly", end_date=None, **overrides):
    fields = dict(
        type=TransactionType.EXPENSE,
        amount=Decimal("1200"),
        category="Rent",
        date=tx_date,
        note="Flat",
        currency="INR",
        recurrence=RecurrenceRule(interval=interval, end_date=end_date),
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestAdvanceDate:

    @pytest.mark.parametrize("interval,expected", [
        (RecurrenceInterval.DAILY, date(2024, 1, 16)),
        (RecurrenceInterval.WEEKLY, date(2024, 1, 22)),
        (RecurrenceInterval.MONTHLY, date(2024, 2, 15)),
        (RecurrenceInterval.YEARLY, date(2025, 1, 15)),
    ])
    def test_advances_one_unit(self, interval, expected):
        assert advance_date(date(2024, 1, 15), interval) == expected

    def test_daily_rolls_over_month_and_year(self):
        assert advance_date(date(2023, 12, 31), RecurrenceInterval.DAILY) == date(2024, 1, 1)

    def test_monthly_clamps_to_month_end(self):
        """Jan 31 advances to the last day of February."""
        assert advance_date(date(2024, 1, 31), RecurrenceInterval.MONTHLY) == date(2024, 2, 29)
        assert advance_date(date(2023, 1, 31), RecurrenceInterval.MONTHLY) == date(2023, 2, 28)

    def test_monthly_december_rolls_into_next_year(self):
        assert advance_date(date(2024, 12, 10), RecurrenceInterval.MONTHLY) == date(2025, 1, 10)

    def test_yearly_from_leap_day(self):
        assert advance_date(date(2024, 2, 29), RecurrenceInterval.YEARLY) == date(2025, 2, 28)

    def test_add_months_many(self):
        assert add_months(date(2024, 3, 31), 11) == date(2025, 2, 28)


class TestNextOccurrence:

    @pytest.mark.parametrize("interval", ["daily", "weekly", "monthly", "yearly"])
    def test_always_after_template_without_end_date(self, interval):
        for start in (date(2024, 1, 31), date(2024, 2, 29), date(2023, 12, 31)):
            occurrence = next_occurrence(make_template(start, interval))
            assert occurrence is not None
            assert occurrence.date > start

    def test_copies_template_fields(self):
        template = make_template()
        occurrence = next_occurrence(template)

        assert occurrence.date == date(2024, 2, 15)
        assert occurrence.type == template.type
        assert occurrence.amount == template.amount
        assert occurrence.category == template.category
        assert occurrence.note == template.note
        assert occurrence.currency == template.currency
        assert occurrence.recurrence == template.recurrence
        assert occurrence.state == RecordState.ACTIVE

    def test_fresh_identifier(self):
        template = make_template()
        occurrence = next_occurrence(template)
        assert occurrence.id != template.id

    def test_template_not_modified(self):
        template = make_template()
        next_occurrence(template)
        assert template.date == date(2024, 1, 15)

    def test_end_date_is_inclusive(self):
        """An occurrence falling exactly on the end date is still produced."""
        occurrence = next_occurrence(make_template(end_date=date(2024, 2, 15)))
        assert occurrence is not None
        assert occurrence.date == date(2024, 2, 15)

    def test_end_date_one_day_before_candidate(self):
        assert next_occurrence(make_template(end_date=date(2024, 2, 14))) is None

    def test_unknown_interval_yields_none(self):
        assert next_occurrence(make_template(interval="fortnightly")) is None

    def test_no_recurrence_yields_none(self):
        assert next_occurrence(make_template(recurrence=None)) is None

    def test_idempotent_content(self):
        """Templates differing only by id project identical occurrences."""
        first = make_template()
        second = first.model_copy(update={"id": make_template().id})

        a = next_occurrence(first)
        b = next_occurrence(second)

        assert (a.date, a.amount, a.category, a.currency) == (b.date, b.amount, b.category, b.currency)
        assert a.id != b.id

    def test_occurrence_of_deleted_template_is_active(self):
        occurrence = next_occurrence(make_template(state=RecordState.DELETED))
        assert occurrence.state == RecordState.ACTIVE
