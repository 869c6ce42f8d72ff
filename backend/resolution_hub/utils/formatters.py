"""Money, order-number and identifier formatting helpers."""
import re
import string
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
_BASE36_DIGITS = string.digits + string.ascii_uppercase


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Coerce a price coming from JSON or the database into a Decimal without float noise."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so 19.99 stays 19.99 instead of its binary expansion
    return Decimal(str(value))


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_dollar_amount(amount) -> str:
    return f"${to_money(amount)}"


def clean_phone_number(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def clean_order_number(order_number: str) -> str:
    return (order_number or "").strip().lstrip("#").strip()


def to_base36(number: int) -> str:
    """Uppercase base-36 rendering of a non-negative integer."""
    if number < 0:
        raise ValueError("base36 encoding expects a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
