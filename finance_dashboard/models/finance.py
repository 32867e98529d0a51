"""
Core Data Models for the Finance Dashboard

These models define the schemas for every entity a user owns:
transactions, budgets, goals, investments and preferences, plus the
read-only results produced by the engine (insights, budget alerts,
summaries).

DESIGN DECISION: Money is always Decimal. Amounts in different currencies
are never converted; each transaction carries its own currency code and the
engine sums raw numbers.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class RecurrenceInterval(str, Enum):
    """Supported recurrence units."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecordState(str, Enum):
    """
    Lifecycle state of a stored record.

    Records are never physically removed. Deleting moves a record to
    DELETED and every scan filters on ACTIVE explicitly.
    """
    ACTIVE = "active"
    DELETED = "deleted"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class SnapshotCollection(str, Enum):
    """Collections a client can subscribe to for snapshot updates."""
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    GOALS = "goals"
    INVESTMENTS = "investments"
    PREFERENCES = "preferences"


# Category name -> monthly limit. Replaced wholesale on save.
Budgets = dict[str, Decimal]


# =============================================================================
# TRANSACTIONS
# =============================================================================

class RecurrenceRule(BaseModel):
    """
    Recurrence attached to a template transaction.

    The interval is stored as text: a value outside RecurrenceInterval is
    kept as-is and simply produces no further occurrences.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    interval: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="daily | weekly | monthly | yearly"
    )
    end_date: Optional[date] = Field(
        default=None,
        description="Last date on which an occurrence may fall (inclusive)"
    )

    @field_validator('interval', mode='before')
    @classmethod
    def normalize_interval(cls, v):
        if isinstance(v, Enum):
            v = v.value
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def known_interval(self) -> Optional[RecurrenceInterval]:
        """The interval as an enum member, or None if unrecognized."""
        try:
            return RecurrenceInterval(self.interval)
        except ValueError:
            return None


class Transaction(BaseModel):
    """
    A single income or expense record.

    A transaction with a recurrence rule is the template for the next
    occurrence. Each materialized occurrence is an independent record that
    carries the same rule forward.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in the transaction's own currency"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    date: date
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    currency: str = Field(
        default="INR",
        min_length=1,
        max_length=10,
        description="ISO currency code or symbol"
    )
    recurrence: Optional[RecurrenceRule] = None
    state: RecordState = Field(
        default=RecordState.ACTIVE,
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
    )

    @property
    def is_active(self) -> bool:
        return self.state == RecordState.ACTIVE

    @property
    def month_key(self) -> str:
        """Calendar month of the transaction as YYYY-MM."""
        return self.date.strftime("%Y-%m")


# =============================================================================
# GOALS & INVESTMENTS
# =============================================================================

class Goal(BaseModel):
    """A savings goal with a target amount and deadline."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    target: Decimal = Field(..., gt=0)
    deadline: date
    progress: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def percent_complete(self) -> int:
        """Progress as a whole percentage, capped at 100."""
        return min(100, int(self.progress * 100 / self.target))


class Investment(BaseModel):
    """A manually tracked investment position."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    symbol: str = Field(..., min_length=1, max_length=20)
    quantity: Decimal = Field(..., ge=0)
    avg_price: Decimal = Field(..., ge=0)
    current_price: Optional[Decimal] = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('symbol')
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.upper()

    @property
    def market_value(self) -> Decimal:
        """Quantity valued at the current price, or the average price if unknown."""
        price = self.current_price if self.current_price else self.avg_price
        return self.quantity * price


# =============================================================================
# PREFERENCES & RATES
# =============================================================================

class Preferences(BaseModel):
    """Per-user display preferences."""
    model_config = ConfigDict(str_strip_whitespace=True)

    currency: str = Field(default="INR", min_length=1, max_length=10)
    theme: Theme = Theme.LIGHT
    alerts_enabled: bool = True


class ExchangeRates(BaseModel):
    """
    Currency rates relative to a fixed base.

    Display only: nothing in the engine converts amounts with these.
    """

    base: str = Field(default="USD")
    rates: dict[str, Decimal] = Field(default_factory=dict)
    fetched_at: Optional[datetime] = None

    def rate(self, currency: str) -> Optional[Decimal]:
        if currency.upper() == self.base.upper():
            return Decimal("1")
        return self.rates.get(currency.upper())


# =============================================================================
# ENGINE OUTPUTS
# =============================================================================

class Insight(BaseModel):
    """One line of rule-based insight text shown on the dashboard."""

    id: str
    text: str


class BudgetAlert(BaseModel):
    """A category whose month-to-date spending crossed the alert threshold."""

    category: str
    percent_spent: int
    spent: Decimal
    limit: Decimal

    @property
    def message(self) -> str:
        return f"You're at {self.percent_spent}% of your budget for {self.category}"


class DashboardSummary(BaseModel):
    """Totals shown in the summary panel."""

    income: Decimal
    expense: Decimal
    net: Decimal
    next_goal: Optional[Goal] = None
    net_worth: Decimal = Decimal("0")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating raw transaction input."""

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="True when no error-level issues were found"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
