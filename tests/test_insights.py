"""Tests for the rule-based insight engine."""

from datetime import date, timedelta
from decimal import Decimal

from finance_dashboard.engine.insights import (
    FORECAST_ID,
    HIGH_EXPENSE_ID,
    SAVINGS_RATE_ID,
    TOP_SPEND_ID,
    compute_insights,
    forecast_monthly_net,
    in_window,
    monthly_nets,
    top_category,
)
from finance_dashboard.models.finance import (
    Preferences,
    RecordState,
    Transaction,
    TransactionType,
)

AS_OF = date(2024, 3, 20)
INR = Preferences(currency="INR")


def expense(amount, category="Food", on=AS_OF, **kwargs):
    return Transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal(str(amount)),
        category=category,
        date=on,
        **kwargs,
    )


def income(amount, category="Salary", on=AS_OF, **kwargs):
    return Transaction(
        type=TransactionType.INCOME,
        amount=Decimal(str(amount)),
        category=category,
        date=on,
        **kwargs,
    )


def by_id(insights):
    return {item.id: item.text for item in insights}


class TestTopCategory:

    def test_sums_per_category(self):
        txs = [expense(100, "Food"), expense(50, "Food"), expense(80, "Transport")]
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert texts[TOP_SPEND_ID] == "Top spending category last 30 days: Food (₹150.00)"

    def test_ties_go_to_first_encountered(self):
        assert top_category({"Transport": Decimal("50"), "Food": Decimal("50")}) == ("Transport", Decimal("50"))

    def test_no_item_without_expenses(self):
        texts = by_id(compute_insights([income(100)], INR, AS_OF))
        assert TOP_SPEND_ID not in texts

    def test_ignores_expenses_outside_window(self):
        old = AS_OF - timedelta(days=31)
        txs = [expense(500, "Travel", on=old), expense(20, "Food")]
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert "Food (₹20.00)" in texts[TOP_SPEND_ID]

    def test_symbol_follows_preference_currency(self):
        texts = by_id(compute_insights([expense(1234.5)], Preferences(currency="USD"), AS_OF))
        assert texts[TOP_SPEND_ID].endswith("($1,234.50)")


class TestWindow:

    def test_window_lower_bound_is_inclusive(self):
        edge = expense(1, on=AS_OF - timedelta(days=30))
        outside = expense(1, on=AS_OF - timedelta(days=31))
        assert in_window([edge, outside], AS_OF) == [edge]

    def test_future_dated_transactions_are_included(self):
        future = expense(1, on=AS_OF + timedelta(days=5))
        assert in_window([future], AS_OF) == [future]


class TestSavingsRate:

    def test_rate_and_overspend_warning(self):
        """income 1000 and expense 850 gives 15% and a warning (850 > 800)."""
        txs = [income(1000), expense(850)]
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert texts[SAVINGS_RATE_ID] == "Savings rate last 30 days: 15%"
        assert texts[HIGH_EXPENSE_ID] == "Warning: Expenses are >80% of income last 30 days."

    def test_no_warning_at_exactly_eighty_percent(self):
        texts = by_id(compute_insights([income(1000), expense(800)], INR, AS_OF))
        assert HIGH_EXPENSE_ID not in texts
        assert texts[SAVINGS_RATE_ID] == "Savings rate last 30 days: 20%"

    def test_zero_income_has_no_savings_rate(self):
        insights = compute_insights([expense(100)], INR, AS_OF)
        texts = by_id(insights)
        assert SAVINGS_RATE_ID not in texts
        for item in insights:
            assert "inf" not in item.text.lower()
            assert "nan" not in item.text.lower()

    def test_negative_rate(self):
        texts = by_id(compute_insights([income(100), expense(250)], INR, AS_OF))
        assert texts[SAVINGS_RATE_ID] == "Savings rate last 30 days: -150%"

    def test_custom_window_and_ratio(self):
        txs = [income(1000), expense(600, on=AS_OF - timedelta(days=10))]
        texts = by_id(compute_insights(txs, INR, AS_OF, window_days=7, overspend_ratio=0.5))
        assert texts[SAVINGS_RATE_ID] == "Savings rate last 7 days: 100%"
        assert HIGH_EXPENSE_ID not in texts


class TestForecast:

    def test_mean_of_monthly_nets(self):
        """Nets 100, -50 and 200 average to 83.33, shown as 83."""
        txs = [
            income(100, on=date(2024, 1, 5)),
            expense(50, on=date(2024, 2, 5)),
            income(300, on=date(2024, 3, 5)),
            expense(100, on=date(2024, 3, 6)),
        ]
        assert monthly_nets(txs) == {
            "2024-01": Decimal("100"),
            "2024-02": Decimal("-50"),
            "2024-03": Decimal("200"),
        }
        assert forecast_monthly_net(txs) == 83
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert texts[FORECAST_ID] == "Projected monthly net (simple average): ₹83.00"

    def test_halves_round_toward_positive_infinity(self):
        positive = [income(5, on=date(2024, 1, 1)), income(0, on=date(2024, 2, 1))]
        negative = [expense(5, on=date(2024, 1, 1)), expense(0, on=date(2024, 2, 1))]
        assert forecast_monthly_net(positive) == 3
        assert forecast_monthly_net(negative) == -2

    def test_forecast_uses_all_history(self):
        txs = [income(600, on=date(2020, 6, 1))]
        assert forecast_monthly_net(txs) == 600

    def test_empty_history_forecasts_zero(self):
        insights = compute_insights([], INR, AS_OF)
        assert [item.id for item in insights] == [FORECAST_ID]
        assert insights[0].text == "Projected monthly net (simple average): ₹0.00"


class TestOrderingAndState:

    def test_fixed_order(self):
        txs = [income(1000), expense(900, "Rent"), expense(10, "Food")]
        ids = [item.id for item in compute_insights(txs, INR, AS_OF)]
        assert ids == [TOP_SPEND_ID, SAVINGS_RATE_ID, HIGH_EXPENSE_ID, FORECAST_ID]

    def test_input_order_does_not_change_totals(self):
        txs = [income(1000), expense(100, "Food"), expense(30, "Food"), expense(120, "Rent")]
        assert by_id(compute_insights(txs, INR, AS_OF)) == by_id(compute_insights(txs[::-1], INR, AS_OF))

    def test_deleted_transactions_are_ignored(self):
        txs = [
            income(1000),
            expense(950, "Rent", state=RecordState.DELETED),
            expense(100, "Food"),
        ]
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert "Food" in texts[TOP_SPEND_ID]
        assert texts[SAVINGS_RATE_ID] == "Savings rate last 30 days: 90%"
        assert HIGH_EXPENSE_ID not in texts

    def test_mixed_currencies_sum_raw_amounts(self):
        txs = [expense(100, "Food", currency="USD"), expense(50, "Food", currency="INR")]
        texts = by_id(compute_insights(txs, INR, AS_OF))
        assert texts[TOP_SPEND_ID].endswith("Food (₹150.00)")
