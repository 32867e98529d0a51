"""
Exchange Rate Service

Keeps a currency rate table for display next to amounts. The table is
fetched over HTTP and reused until it is older than the configured
refresh interval.

DESIGN DECISION: A failed refresh keeps the previous table. Stale rates
are better than no rates for a display-only value, and the next call
after the interval tries again.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import requests
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_dashboard.config import ExchangeRateSettings, get_settings
from finance_dashboard.models.finance import ExchangeRates

logger = structlog.get_logger(__name__)


class ExchangeRateError(Exception):
    """The rate endpoint could not be reached or returned an unusable body."""
    pass


class ExchangeRateService:
    """Fetches and caches the rate table for one base currency."""

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        now: Callable[[], datetime] = datetime.utcnow,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().exchange_rates
        self._now = now
        self._http = session or requests
        self._rates: Optional[ExchangeRates] = None
        self._last_error: Optional[str] = None

    @property
    def base_currency(self) -> str:
        return self._settings.base_currency

    @property
    def rates(self) -> Optional[ExchangeRates]:
        """The last successfully fetched table, if any."""
        return self._rates

    @property
    def last_error(self) -> Optional[str]:
        """Why the most recent refresh() failed, or None if it did not."""
        return self._last_error

    def is_stale(self) -> bool:
        if self._rates is None or self._rates.fetched_at is None:
            return True
        interval = timedelta(minutes=self._settings.refresh_interval_minutes)
        return self._now() - self._rates.fetched_at >= interval

    def _parse_rates(self, body: dict) -> dict[str, Decimal]:
        raw = body.get("rates")
        if not isinstance(raw, dict):
            raise ExchangeRateError("Response has no 'rates' object")
        rates = {}
        for code, value in raw.items():
            try:
                rates[str(code).upper()] = Decimal(str(value))
            except (InvalidOperation, TypeError, ValueError):
                logger.warning("exchange_rate_skipped", currency=code, value=value)
        return rates

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _get(self) -> dict:
        response = self._http.get(
            self._settings.api_url,
            params={"base": self._settings.base_currency},
            timeout=self._settings.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def fetch_rates(self) -> ExchangeRates:
        """
        Fetch a fresh table and make it current.

        Raises:
            ExchangeRateError: If the request fails after retries or the
                body carries no rates
        """
        try:
            body = self._get()
        except requests.RequestException as e:
            raise ExchangeRateError(f"Failed to fetch exchange rates: {e}")
        except ValueError as e:
            raise ExchangeRateError(f"Exchange rate response is not JSON: {e}")

        if not isinstance(body, dict):
            raise ExchangeRateError("Exchange rate response is not an object")

        self._rates = ExchangeRates(
            base=str(body.get("base") or self._settings.base_currency).upper(),
            rates=self._parse_rates(body),
            fetched_at=self._now(),
        )
        logger.info(
            "exchange_rates_refreshed",
            base=self._rates.base,
            currencies=len(self._rates.rates),
        )
        return self._rates

    def refresh(self, force: bool = False) -> Optional[ExchangeRates]:
        """
        Fetch only when the table is stale (or force is set).

        On failure the previous table stays current and is returned, and
        last_error holds the reason until the next call.
        """
        self._last_error = None
        if not force and not self.is_stale():
            return self._rates
        try:
            return self.fetch_rates()
        except ExchangeRateError as e:
            logger.warning("exchange_rates_refresh_failed", error=str(e))
            self._last_error = str(e)
            return self._rates
