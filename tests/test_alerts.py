"""Tests for the budget alert evaluator."""

from datetime import date
from decimal import Decimal

from finance_dashboard.engine.alerts import due_alerts, month_key, month_to_date_spending
from finance_dashboard.models.finance import RecordState, Transaction, TransactionType


def expense(amount, category="Food", on=date(2024, 3, 10), **kwargs):
    return Transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal(str(amount)),
        category=category,
        date=on,
        **kwargs,
    )


class TestDueAlerts:

    def test_alert_above_threshold(self):
        alerts = due_alerts([expense(950)], {"Food": Decimal("1000")}, "2024-03")
        assert len(alerts) == 1
        assert alerts[0].category == "Food"
        assert alerts[0].percent_spent == 95
        assert alerts[0].spent == Decimal("950")
        assert alerts[0].limit == Decimal("1000")

    def test_no_alert_at_exactly_ninety_percent(self):
        assert due_alerts([expense(900)], {"Food": Decimal("1000")}, "2024-03") == []

    def test_accepts_date_for_current_month(self):
        alerts = due_alerts([expense(950)], {"Food": 1000}, date(2024, 3, 31))
        assert [a.percent_spent for a in alerts] == [95]

    def test_only_current_month_counts(self):
        txs = [expense(500, on=date(2024, 2, 28)), expense(500, on=date(2024, 3, 1))]
        assert due_alerts(txs, {"Food": 1000}, "2024-03") == []

    def test_unbudgeted_category_never_alerts(self):
        assert due_alerts([expense(5000, "Travel")], {"Food": 1000}, "2024-03") == []

    def test_zero_limit_is_skipped(self):
        assert due_alerts([expense(10)], {"Food": 0}, "2024-03") == []

    def test_income_is_not_spending(self):
        salary = Transaction(
            type=TransactionType.INCOME,
            amount=Decimal("5000"),
            category="Food",
            date=date(2024, 3, 1),
        )
        assert due_alerts([salary], {"Food": 1000}, "2024-03") == []

    def test_deleted_expenses_are_ignored(self):
        txs = [expense(950, state=RecordState.DELETED)]
        assert due_alerts(txs, {"Food": 1000}, "2024-03") == []

    def test_percentage_rounds_half_up(self):
        alerts = due_alerts([expense("182.5")], {"Food": 200}, "2024-03")
        # 91.25% -> 91
        assert alerts[0].percent_spent == 91
        alerts = due_alerts([expense("181")], {"Food": 200}, "2024-03")
        # 90.5% -> 91
        assert alerts[0].percent_spent == 91

    def test_over_budget_reports_full_percentage(self):
        alerts = due_alerts([expense(1500)], {"Food": 1000}, "2024-03")
        assert alerts[0].percent_spent == 150

    def test_alerts_follow_budget_order(self):
        txs = [expense(100, "Food"), expense(100, "Rent")]
        alerts = due_alerts(txs, {"Rent": 100, "Food": 100}, "2024-03")
        assert [a.category for a in alerts] == ["Rent", "Food"]

    def test_custom_threshold(self):
        alerts = due_alerts([expense(600)], {"Food": 1000}, "2024-03", threshold=0.5)
        assert [a.percent_spent for a in alerts] == [60]


class TestMonthHelpers:

    def test_month_key(self):
        assert month_key(date(2024, 1, 5)) == "2024-01"

    def test_month_to_date_spending(self):
        txs = [expense(10, "Food"), expense(5, "Food"), expense(7, "Rent")]
        assert month_to_date_spending(txs, "2024-03") == {
            "Food": Decimal("15"),
            "Rent": Decimal("7"),
        }
