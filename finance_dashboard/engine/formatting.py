"""Currency display helpers shared by the engine and the export services."""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def round_half_up(value: Number) -> int:
    """Round to the nearest whole unit, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return int((Decimal(str(value)) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def currency_symbol(currency: str) -> str:
    """
    Symbol used when displaying amounts for a preference currency.

    Accepts either an ISO code or a symbol. Unknown codes are shown as
    the code followed by a space.
    """
    if currency in CURRENCY_SYMBOLS.values():
        return currency
    code = (currency or "").strip().upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_amount(amount: Number, currency: str = "INR") -> str:
    """
    Format an amount for display, e.g. '₹1,50,000.00' or '-$1,234.50'.

    Only the symbol depends on the currency; the amount is never converted.
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = currency_symbol(currency)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    if symbol == CURRENCY_SYMBOLS["INR"]:
        grouped = _group_indian(whole)
    else:
        grouped = f"{int(whole):,}"
    return f"{sign}{symbol}{grouped}.{frac}"
