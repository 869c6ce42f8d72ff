"""
Input validation for customer identification and item selection.

Validation happens before any external lookup is attempted; every problem
found is reported at once through ``ValidationError.errors``.
"""
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from resolution_hub.core.errors import ValidationError
from resolution_hub.utils.formatters import clean_order_number, clean_phone_number

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_phone(phone: str) -> bool:
    cleaned = clean_phone_number(phone)
    return 10 <= len(cleaned) <= 15


def is_valid_order_number(order_number: str) -> bool:
    cleaned = clean_order_number(order_number)
    return cleaned.isdigit()


def days_since(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since ``moment``. Naive datetimes are treated as UTC."""
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - moment).days


def validate_customer_identification(
    email: Optional[str] = None,
    phone: Optional[str] = None,
    first_name: Optional[str] = None,
    order_number: Optional[str] = None,
) -> None:
    """
    Reject malformed identification input.

    Raises:
        ValidationError: listing every problem found
    """
    errors = []

    if not email and not phone:
        errors.append("Please provide either email or phone number")

    if email and not is_valid_email(email):
        errors.append("Please enter a valid email address")

    if phone and not is_valid_phone(phone):
        errors.append("Please enter a valid phone number")

    if first_name is not None and not first_name.strip():
        errors.append("Please enter your first name")

    if order_number and not is_valid_order_number(order_number):
        errors.append("Please enter a valid order number")

    if errors:
        raise ValidationError(errors)


def validate_item_selection(item_ids: Iterable[str]) -> None:
    if not list(item_ids or []):
        raise ValidationError(["Please select at least one item"])
