"""
Two-Stage Transaction Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Format validation (ISO dates, numeric amounts)
- Known transaction type and recurrence interval
- This catches malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Recurrence end date before the start date
- Absurd amount detection
- Zero amounts and far-future dates
- This catches logically impossible or suspicious data

Stage 2 only runs when stage 1 passes, since it needs parsed values.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to correct.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from finance_dashboard.config import get_settings
from finance_dashboard.models.finance import (
    RecurrenceInterval,
    RecurrenceRule,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)

FAR_FUTURE_DAYS = 366

# Match the Transaction field limits
TEXT_LIMITS = {"category": 100, "note": 500, "currency": 10}


def _text(form: dict, key: str) -> str:
    value = form.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_amount(value: str) -> Optional[Decimal]:
    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


class TransactionValidator:
    """
    Validates raw transaction form input.

    A form is a flat mapping of strings as submitted by the entry form:
    type, amount, category, date, note, currency, recurrence and
    recurrence_end_date.
    """

    def __init__(self, max_amount: Optional[float] = None):
        self._max_amount = Decimal(str(
            max_amount if max_amount is not None
            else get_settings().app.max_transaction_amount
        ))

    def _validate_schema(self, form: dict) -> list[ValidationIssue]:
        issues = []

        tx_type = _text(form, "type").lower()
        if tx_type not in {t.value for t in TransactionType}:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message="Type must be income or expense",
                severity="error",
            ))

        amount_text = _text(form, "amount")
        if not amount_text:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            amount = _parse_amount(amount_text)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount '{amount_text}' is not a number",
                    severity="error",
                ))
            elif amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount cannot be negative",
                    severity="error",
                    suggested_fix="Enter the amount without a sign and pick the type",
                ))

        if not _text(form, "category"):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        for field, limit in TEXT_LIMITS.items():
            length = len(_text(form, field))
            if length > limit:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"{field.capitalize()} is too long ({length} characters)",
                    severity="error",
                    suggested_fix=f"Use at most {limit} characters",
                ))

        date_text = _text(form, "date")
        if not date_text:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif _parse_date(date_text) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date '{date_text}' is not in YYYY-MM-DD format",
                severity="error",
            ))

        interval = _text(form, "recurrence").lower()
        if interval and interval not in {i.value for i in RecurrenceInterval}:
            issues.append(ValidationIssue(
                field="recurrence",
                issue_type="invalid_value",
                message=f"Unknown recurrence '{interval}'",
                severity="error",
                suggested_fix="Use daily, weekly, monthly or yearly",
            ))

        end_text = _text(form, "recurrence_end_date")
        if end_text and _parse_date(end_text) is None:
            issues.append(ValidationIssue(
                field="recurrence_end_date",
                issue_type="invalid_format",
                message=f"End date '{end_text}' is not in YYYY-MM-DD format",
                severity="error",
            ))

        return issues

    def _validate_semantic(self, form: dict, today: date) -> list[ValidationIssue]:
        issues = []
        amount = _parse_amount(_text(form, "amount"))
        tx_date = _parse_date(_text(form, "date"))
        end_text = _text(form, "recurrence_end_date")

        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
            ))
        elif amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if tx_date > today + timedelta(days=FAR_FUTURE_DAYS):
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({tx_date}) is more than a year ahead",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if end_text:
            end_date = _parse_date(end_text)
            if not _text(form, "recurrence"):
                issues.append(ValidationIssue(
                    field="recurrence_end_date",
                    issue_type="inconsistent",
                    message="End date given for a transaction that does not repeat",
                    severity="warning",
                ))
            elif end_date < tx_date:
                issues.append(ValidationIssue(
                    field="recurrence_end_date",
                    issue_type="inconsistent",
                    message="Recurrence ends before the first occurrence",
                    severity="error",
                    suggested_fix="Pick an end date on or after the transaction date",
                ))

        return issues

    def validate(self, form: dict[str, Any], today: Optional[date] = None) -> ValidationResult:
        """
        Run the two-stage validation pipeline.

        Args:
            form: Raw form values
            today: Reference date for the far-future check

        Returns:
            ValidationResult with all issues found
        """
        issues = self._validate_schema(form)
        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_semantic(form, today or date.today()))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def to_transaction(self, form: dict[str, Any], default_currency: str = "INR") -> Transaction:
        """
        Build a Transaction from a form that passed validate().

        Raises:
            ValueError: If the form has error-level issues
        """
        result = self.validate(form)
        if not result.is_valid:
            raise ValueError(f"Form has {result.error_count} errors")

        interval = _text(form, "recurrence").lower()
        end_text = _text(form, "recurrence_end_date")
        recurrence = None
        if interval:
            recurrence = RecurrenceRule(
                interval=interval,
                end_date=_parse_date(end_text) if end_text else None,
            )

        return Transaction(
            type=TransactionType(_text(form, "type").lower()),
            amount=_parse_amount(_text(form, "amount")),
            category=_text(form, "category"),
            date=_parse_date(_text(form, "date")),
            note=_text(form, "note") or None,
            currency=_text(form, "currency") or default_currency,
            recurrence=recurrence,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One message per issue, errors first."""
        if result.is_valid and not result.warnings:
            return "✅ Looks good."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("❌ Please fix the following:")
            for issue in errors:
                line = f"  • {issue.message}"
                if issue.suggested_fix:
                    line += f" ({issue.suggested_fix})"
                lines.append(line)
        if result.warnings:
            lines.append("⚠️ Please double-check:")
            lines.extend(f"  • {message}" for message in result.warnings)
        return "\n".join(lines)
