"""Tests for amount conversion and webhook field validation at the gateway boundary."""

import pytest
from payments.gateway.errors import WebhookValidationError
from payments.gateway.port import format_amount, from_minor_units, require_fields, to_minor_units
from protean.exceptions import ValidationError


class TestAmounts:
    @pytest.mark.parametrize(
        "amount, expected",
        [(2500, 250000), (2500.5, 250050), (19.99, 1999), (0.1 + 0.2, 30), ("10.005", 1001)],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_from_minor_units(self):
        assert from_minor_units(250050) == 2500.5

    def test_format_amount_has_two_decimals(self):
        assert format_amount(2500) == "2500.00"
        assert format_amount(19.999) == "20.00"


class TestRequireFields:
    def test_passes_when_all_present(self):
        require_fields({"a": "1", "b": 0}, ("a", "b"))

    def test_absent_field(self):
        with pytest.raises(WebhookValidationError) as exc:
            require_fields({"a": "1"}, ("a", "b"))
        assert exc.value.missing_field == "b"

    def test_empty_field(self):
        with pytest.raises(WebhookValidationError) as exc:
            require_fields({"a": ""}, ("a",))
        assert exc.value.missing_field == "a"

    def test_reports_first_missing_field_in_order(self):
        with pytest.raises(WebhookValidationError) as exc:
            require_fields({}, ("ORDERID", "STATUS"))
        assert exc.value.missing_field == "ORDERID"

    def test_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            require_fields({}, ("STATUS",))
        assert "STATUS" in exc.value.messages
