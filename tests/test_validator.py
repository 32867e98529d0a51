"""Tests for transaction form validation."""

from datetime import date
from decimal import Decimal

import pytest

from finance_dashboard.models.finance import RecurrenceInterval, TransactionType
from finance_dashboard.validation import TransactionValidator

TODAY = date(2024, 3, 15)


def make_form(**overrides):
    form = {
        "type": "expense",
        "amount": "250.75",
        "category": "Food",
        "date": "2024-03-10",
        "note": "",
        "currency": "",
        "recurrence": "",
        "recurrence_end_date": "",
    }
    form.update(overrides)
    return form


def fields_with(result, severity):
    return {issue.field for issue in result.issues if issue.severity == severity}


@pytest.fixture
def validator():
    return TransactionValidator(max_amount=1000000)


class TestSchemaStage:

    def test_valid_form(self, validator):
        result = validator.validate(make_form(), today=TODAY)
        assert result.is_valid is True
        assert result.issues == []

    def test_missing_required_fields(self, validator):
        result = validator.validate(make_form(amount="", category=" ", date=None), today=TODAY)
        assert result.is_valid is False
        assert fields_with(result, "error") == {"amount", "category", "date"}

    def test_bad_formats(self, validator):
        result = validator.validate(make_form(amount="12abc", date="10/03/2024"), today=TODAY)
        assert fields_with(result, "error") == {"amount", "date"}

    def test_non_finite_amount(self, validator):
        result = validator.validate(make_form(amount="NaN"), today=TODAY)
        assert "amount" in fields_with(result, "error")

    def test_negative_amount(self, validator):
        result = validator.validate(make_form(amount="-5"), today=TODAY)
        assert fields_with(result, "error") == {"amount"}
        assert result.issues[0].suggested_fix is not None

    def test_unknown_type(self, validator):
        result = validator.validate(make_form(type="transfer"), today=TODAY)
        assert fields_with(result, "error") == {"type"}

    def test_unknown_recurrence(self, validator):
        result = validator.validate(make_form(recurrence="fortnightly"), today=TODAY)
        assert fields_with(result, "error") == {"recurrence"}

    def test_overlong_text_fields(self, validator):
        result = validator.validate(
            make_form(category="x" * 101, note="n" * 501, currency="DOLLARSXYZW"),
            today=TODAY,
        )
        assert result.is_valid is False
        assert fields_with(result, "error") == {"category", "note", "currency"}

    def test_text_fields_at_limit_pass(self, validator):
        result = validator.validate(
            make_form(category="x" * 100, note="n" * 500, currency="C" * 10),
            today=TODAY,
        )
        assert result.is_valid is True

    def test_semantic_stage_skipped_on_schema_errors(self, validator):
        result = validator.validate(make_form(type="bogus", amount="0"), today=TODAY)
        assert fields_with(result, "warning") == set()


class TestSemanticStage:

    def test_zero_amount_warns(self, validator):
        result = validator.validate(make_form(amount="0"), today=TODAY)
        assert result.is_valid is True
        assert fields_with(result, "warning") == {"amount"}

    def test_huge_amount_warns(self, validator):
        result = validator.validate(make_form(amount="5000000"), today=TODAY)
        assert result.is_valid is True
        assert result.warnings == ["Amount (5,000,000.00) seems unusually high"]

    def test_far_future_date_warns(self, validator):
        result = validator.validate(make_form(date="2026-01-01"), today=TODAY)
        assert fields_with(result, "warning") == {"date"}

    def test_end_date_before_start_is_error(self, validator):
        result = validator.validate(
            make_form(recurrence="monthly", recurrence_end_date="2024-03-01"),
            today=TODAY,
        )
        assert result.is_valid is False
        assert fields_with(result, "error") == {"recurrence_end_date"}

    def test_end_date_without_recurrence_warns(self, validator):
        result = validator.validate(make_form(recurrence_end_date="2024-12-31"), today=TODAY)
        assert result.is_valid is True
        assert fields_with(result, "warning") == {"recurrence_end_date"}


class TestToTransaction:

    def test_builds_transaction(self, validator):
        tx = validator.to_transaction(
            make_form(
                type="Income",
                note=" Bonus ",
                recurrence="Monthly",
                recurrence_end_date="2024-12-10",
            ),
            default_currency="USD",
        )
        assert tx.type == TransactionType.INCOME
        assert tx.amount == Decimal("250.75")
        assert tx.date == date(2024, 3, 10)
        assert tx.note == "Bonus"
        assert tx.currency == "USD"
        assert tx.recurrence.known_interval == RecurrenceInterval.MONTHLY
        assert tx.recurrence.end_date == date(2024, 12, 10)

    def test_form_currency_wins(self, validator):
        tx = validator.to_transaction(make_form(currency="EUR"), default_currency="USD")
        assert tx.currency == "EUR"
        assert tx.recurrence is None

    def test_invalid_form_raises(self, validator):
        with pytest.raises(ValueError):
            validator.to_transaction(make_form(amount="abc"))


class TestUserFriendlySummary:

    def test_summary_lists_errors_and_warnings(self, validator):
        result = validator.validate(make_form(amount="-1"), today=TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌")
        assert "Amount cannot be negative" in summary

    def test_summary_when_clean(self, validator):
        result = validator.validate(make_form(), today=TODAY)
        assert validator.get_user_friendly_summary(result) == "✅ Looks good."
