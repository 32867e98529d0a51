"""Exchange rate services package."""

from finance_dashboard.services.rates.exchange_rates import (
    ExchangeRateError,
    ExchangeRateService,
)

__all__ = [
    "ExchangeRateError",
    "ExchangeRateService",
]
