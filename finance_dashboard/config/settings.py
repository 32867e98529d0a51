"""
Configuration Management for the Finance Dashboard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds used by the insight and alert engines live in AppSettings so the
orchestrator can pass them in; the engine functions themselves never read
settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names within the spreadsheet
    transactions_sheet_name: str = Field(default="Transactions")
    budgets_sheet_name: str = Field(default="Budgets")
    goals_sheet_name: str = Field(default="Goals")
    investments_sheet_name: str = Field(default="Investments")
    preferences_sheet_name: str = Field(default="Preferences")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class ExchangeRateSettings(BaseSettings):
    """Currency rate lookup service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATES_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://api.exchangerate.host/latest",
        description="Endpoint returning {'rates': {...}} for a base currency"
    )
    base_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
    )
    refresh_interval_minutes: int = Field(
        default=30,
        ge=1,
        description="Minimum age of the rate table before it is fetched again"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    default_currency: str = Field(
        default="INR",
        description="Currency used for new users and for CSV rows without one"
    )

    # Insight thresholds
    insight_window_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Length of the trailing window used by insights"
    )
    overspend_ratio: float = Field(
        default=0.8,
        gt=0.0,
        description="Expense/income ratio above which a warning is shown"
    )
    budget_alert_threshold: float = Field(
        default=0.9,
        gt=0.0,
        description="Spent/limit ratio above which a budget alert fires"
    )

    # Validation thresholds
    max_transaction_amount: float = Field(
        default=100000000.0,
        description="Maximum reasonable transaction amount (for sanity checking)"
    )

    report_recent_transactions: int = Field(
        default=20,
        ge=1,
        le=500,
        description="How many recent transactions the report lists"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def exchange_rates(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed to load.
    """
    results = {}

    settings = get_settings()

    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "exchange_rates": lambda: settings.exchange_rates,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
