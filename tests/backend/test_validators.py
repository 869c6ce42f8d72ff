import pytest
from datetime import datetime, timedelta, timezone

from resolution_hub.core.errors import ValidationError
from resolution_hub.utils.validators import (
    days_since,
    is_valid_email,
    is_valid_order_number,
    is_valid_phone,
    validate_customer_identification,
    validate_item_selection,
)


class TestFieldValidators:

    @pytest.mark.parametrize("email,valid", [
        ("jane@example.com", True),
        ("jane.doe+dogs@mail.co.uk", True),
        ("jane@", False),
        ("jane example@x.com", False),
        ("", False),
    ])
    def test_email(self, email, valid):
        assert is_valid_email(email) is valid

    @pytest.mark.parametrize("phone,valid", [
        ("(555) 123-4567", True),
        ("+1 555 123 4567", True),
        ("12345", False),
    ])
    def test_phone(self, phone, valid):
        assert is_valid_phone(phone) is valid

    def test_order_number(self):
        assert is_valid_order_number("#1001")
        assert not is_valid_order_number("abc")

    def test_days_since_handles_naive_datetimes(self):
        now = datetime(2024, 3, 10, tzinfo=timezone.utc)
        assert days_since(datetime(2024, 3, 1), now) == 9
        assert days_since(now - timedelta(hours=23), now) == 0


class TestIdentificationValidation:

    def test_valid_input_passes(self):
        validate_customer_identification(email="jane@example.com", first_name="Jane")

    def test_requires_email_or_phone(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_customer_identification(first_name="Jane")
        assert exc_info.value.errors == ["Please provide either email or phone number"]

    def test_reports_every_problem(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_customer_identification(email="bad", phone="12", first_name=" ", order_number="x")
        assert len(exc_info.value.errors) == 4

    def test_item_selection_required(self):
        with pytest.raises(ValidationError):
            validate_item_selection([])
        validate_item_selection(["li-1"])
