"""
Bank Webhook Import

Accepts the JSON body a bank aggregator webhook would deliver:

    {"transactions": [{"date": "2024-03-01", "amount": -42.5,
                       "description": "Coffee", "category": "Food"}]}

Signed amounts are mapped to typed transactions: positive is income,
anything else is an expense of the absolute value. Only the mapping lives
here; authenticating the webhook is the receiving endpoint's job.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from finance_dashboard.models.finance import Transaction, TransactionType

DEFAULT_CATEGORY = "Uncategorized"


class BankImportError(Exception):
    """The webhook body does not have the expected shape."""
    pass


class BankTransactionEntry(BaseModel):
    """One transaction line as the bank reports it."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    posted_on: Optional[date] = Field(
        default=None,
        alias="date",
        description="Booking date; the import date is used when missing"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount: positive credits, negative debits"
    )
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = Field(default=None, max_length=100)


class BankWebhookPayload(BaseModel):
    transactions: Optional[list[BankTransactionEntry]] = None


def parse_bank_payload(
    payload: Any,
    as_of: date,
    currency: str = "INR",
) -> list[Transaction]:
    """
    Map a webhook body to new transactions.

    Args:
        payload: Decoded JSON body
        as_of: Date used for entries without one
        currency: Currency stamped on every imported transaction

    Returns:
        New transactions in payload order; empty when the body has no
        transactions list

    Raises:
        BankImportError: If an entry is malformed
    """
    if not isinstance(payload, dict) or not payload.get("transactions"):
        return []

    try:
        parsed = BankWebhookPayload.model_validate(payload)
    except ValidationError as e:
        raise BankImportError(f"Invalid bank payload: {e.error_count()} errors") from e

    imported = []
    for entry in parsed.transactions or []:
        imported.append(Transaction(
            type=TransactionType.INCOME if entry.amount > 0 else TransactionType.EXPENSE,
            amount=abs(entry.amount),
            category=entry.category or DEFAULT_CATEGORY,
            date=entry.posted_on or as_of,
            note=entry.description or None,
            currency=currency,
        ))
    return imported
