"""Tests for notifications, exchange rates, export and bank import."""

import time
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from finance_dashboard.config import ExchangeRateSettings
from finance_dashboard.models.finance import (
    BudgetAlert,
    Preferences,
    Transaction,
    TransactionType,
)
from finance_dashboard.services.bank_import import BankImportError, parse_bank_payload
from finance_dashboard.services.export import build_report, export_transactions_csv
from finance_dashboard.services.notifications import (
    ALERT_TITLE,
    BudgetAlertService,
    LoggingNotifier,
    NotifierInterface,
)
from finance_dashboard.services.rates import ExchangeRateError, ExchangeRateService


class RecordingNotifier(NotifierInterface):

    def __init__(self, accept=True):
        self.accept = accept
        self.sent = []

    def notify(self, title, body):
        self.sent.append((title, body))
        return self.accept


class BrokenNotifier(NotifierInterface):

    def notify(self, title, body):
        raise RuntimeError("permission denied")


def make_alert(category="Food", percent=95):
    return BudgetAlert(
        category=category,
        percent_spent=percent,
        spent=Decimal(percent * 10),
        limit=Decimal("1000"),
    )


class TestBudgetAlertService:

    def test_sends_title_and_body(self):
        notifier = RecordingNotifier()
        service = BudgetAlertService(notifier)

        assert service.send(make_alert()) is True
        assert notifier.sent == [(ALERT_TITLE, "You're at 95% of your budget for Food")]

    def test_one_notification_per_alert(self):
        notifier = RecordingNotifier()
        results = BudgetAlertService(notifier).send_all([make_alert("Food"), make_alert("Rent", 120)])

        assert [delivered for _, delivered in results] == [True, True]
        assert [body for _, body in notifier.sent] == [
            "You're at 95% of your budget for Food",
            "You're at 120% of your budget for Rent",
        ]

    def test_rejected_notification_reported(self):
        assert BudgetAlertService(RecordingNotifier(accept=False)).send(make_alert()) is False

    def test_failing_notifier_is_absorbed(self):
        assert BudgetAlertService(BrokenNotifier()).send(make_alert()) is False

    def test_logging_notifier_accepts(self):
        assert LoggingNotifier().notify("Budget Alert", "body") is True


class FakeClock:

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


def rate_response(body):
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def rate_settings():
    return ExchangeRateSettings(
        api_url="https://rates.test/latest",
        base_currency="USD",
        refresh_interval_minutes=30,
        timeout_seconds=5,
    )


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda seconds: None)


class TestExchangeRateService:

    def test_fetch_parses_rates(self, rate_settings):
        session = MagicMock()
        session.get.return_value = rate_response({"base": "USD", "rates": {"INR": 83.12, "eur": "0.92"}})
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        service = ExchangeRateService(rate_settings, now=clock, session=session)

        rates = service.fetch_rates()

        assert rates.base == "USD"
        assert rates.rates == {"INR": Decimal("83.12"), "EUR": Decimal("0.92")}
        assert rates.fetched_at == clock.now
        session.get.assert_called_once_with(
            "https://rates.test/latest",
            params={"base": "USD"},
            timeout=5,
        )

    def test_refresh_respects_interval(self, rate_settings):
        session = MagicMock()
        session.get.return_value = rate_response({"rates": {"INR": 83}})
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        service = ExchangeRateService(rate_settings, now=clock, session=session)

        service.refresh()
        clock.now += timedelta(minutes=29)
        service.refresh()
        assert session.get.call_count == 1

        clock.now += timedelta(minutes=1)
        service.refresh()
        assert session.get.call_count == 2

    def test_failed_refresh_keeps_previous_table(self, rate_settings, no_sleep):
        session = MagicMock()
        session.get.return_value = rate_response({"rates": {"INR": 83}})
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        service = ExchangeRateService(rate_settings, now=clock, session=session)
        first = service.refresh()

        session.get.side_effect = requests.ConnectionError("offline")
        clock.now += timedelta(hours=1)

        assert service.refresh() == first
        assert service.rates == first
        assert "offline" in service.last_error

        session.get.side_effect = None
        clock.now += timedelta(hours=1)
        assert service.refresh() != first
        assert service.last_error is None

    def test_transport_errors_are_retried(self, rate_settings, no_sleep):
        session = MagicMock()
        session.get.side_effect = [
            requests.Timeout("slow"),
            rate_response({"rates": {"INR": 83}}),
        ]
        service = ExchangeRateService(rate_settings, session=session)

        assert service.fetch_rates().rates == {"INR": Decimal("83")}
        assert session.get.call_count == 2

    def test_fetch_raises_after_retries(self, rate_settings, no_sleep):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("offline")
        service = ExchangeRateService(rate_settings, session=session)

        with pytest.raises(ExchangeRateError):
            service.fetch_rates()
        assert session.get.call_count == 3

    def test_body_without_rates_is_an_error(self, rate_settings):
        session = MagicMock()
        session.get.return_value = rate_response({"error": "bad key"})
        service = ExchangeRateService(rate_settings, session=session)

        with pytest.raises(ExchangeRateError):
            service.fetch_rates()
        assert service.rates is None

    def test_stale_without_table(self, rate_settings):
        assert ExchangeRateService(rate_settings, session=MagicMock()).is_stale() is True


def make_tx(amount, tx_type=TransactionType.EXPENSE, on=date(2024, 3, 1), **kwargs):
    return Transaction(
        type=tx_type,
        amount=Decimal(str(amount)),
        category=kwargs.pop("category", "Food"),
        date=on,
        **kwargs,
    )


class TestCsvExport:

    def test_header_and_quoted_rows(self):
        tx = make_tx("12.50", note='Said "hi", left', currency="USD")
        csv_text = export_transactions_csv([tx], "INR")

        lines = csv_text.split("\n")
        assert lines[0] == "id,type,amount,currency,category,note,date"
        assert lines[1] == f'"{tx.id}","expense","12.50","USD","Food","Said ""hi"", left","2024-03-01"'
        assert not csv_text.endswith("\n")

    def test_missing_note_is_empty_string(self):
        tx = make_tx(5)
        assert csv_row_fields(export_transactions_csv([tx]))[5] == '""'

    def test_empty_export_is_header_only(self):
        assert export_transactions_csv([]) == "id,type,amount,currency,category,note,date"


def csv_row_fields(csv_text):
    return csv_text.split("\n")[1].split(",")


class TestReport:

    def test_report_sections(self):
        txs = [
            make_tx(1000, TransactionType.INCOME, category="Salary", on=date(2024, 3, 2)),
            make_tx(250, note="Groceries", on=date(2024, 3, 1)),
        ]
        lines = build_report(txs, Preferences(currency="INR"), datetime(2024, 3, 5, 9, 30))

        assert lines[0] == "Personal Finance Report"
        assert lines[1] == "Generated: 2024-03-05 09:30"
        assert "Total income: ₹1,000.00" in lines
        assert "Total expense: ₹250.00" in lines
        assert "Net: ₹750.00" in lines
        assert lines[-1] == "2024-03-01 | expense | Food | ₹250.00 | Groceries"

    def test_recent_section_is_limited(self):
        txs = [make_tx(i + 1) for i in range(25)]
        lines = build_report(txs, Preferences(), datetime(2024, 3, 5), recent_count=20)
        recent = lines[lines.index("Recent transactions") + 1:]
        assert len(recent) == 20


class TestBankImport:

    def test_signed_amounts_map_to_types(self):
        payload = {"transactions": [
            {"date": "2024-03-01", "amount": 2500, "description": "Salary"},
            {"date": "2024-03-02", "amount": -42.5, "description": "Coffee", "category": "Food"},
        ]}
        imported = parse_bank_payload(payload, date(2024, 3, 10))

        assert [t.type for t in imported] == [TransactionType.INCOME, TransactionType.EXPENSE]
        assert imported[1].amount == Decimal("42.5")
        assert imported[1].category == "Food"
        assert imported[1].note == "Coffee"
        assert imported[0].category == "Uncategorized"

    def test_missing_date_uses_import_date(self):
        imported = parse_bank_payload({"transactions": [{"amount": -1}]}, date(2024, 3, 10))
        assert imported[0].date == date(2024, 3, 10)
        assert imported[0].note is None

    def test_zero_amount_is_expense(self):
        imported = parse_bank_payload({"transactions": [{"amount": 0}]}, date(2024, 3, 10))
        assert imported[0].type == TransactionType.EXPENSE

    def test_currency_is_stamped(self):
        imported = parse_bank_payload({"transactions": [{"amount": 1}]}, date(2024, 3, 10), currency="USD")
        assert imported[0].currency == "USD"

    @pytest.mark.parametrize("payload", [{}, {"transactions": []}, {"transactions": None}, None, []])
    def test_no_transactions_is_empty(self, payload):
        assert parse_bank_payload(payload, date(2024, 3, 10)) == []

    def test_malformed_entry_raises(self):
        with pytest.raises(BankImportError):
            parse_bank_payload({"transactions": [{"amount": "lots"}]}, date(2024, 3, 10))
