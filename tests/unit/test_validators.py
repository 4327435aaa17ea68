"""
Unit tests for product row validation rules.

Includes property-based testing with hypothesis for integer parsing.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from stockflow.core.validators import (
    IntegerValidator,
    RangeValidator,
    RequiredFieldValidator,
    RowValidator,
    ValidationError,
    find_missing_column,
    normalize_row,
)
from stockflow.core.validators.row_validator import MAX_COUNT
from stockflow.core.validators.type_validator import parse_int


def make_row(**overrides):
    row = {"sku": "A1", "name": "Widget", "quantity": "10", "threshold": "2"}
    row.update(overrides)
    return row


@pytest.mark.unit
class TestRequiredFieldValidator:
    """Tests for RequiredFieldValidator"""

    def test_returns_trimmed_value(self):
        validator = RequiredFieldValidator("sku")
        assert validator.validate("  A1 ", {"sku": "  A1 "}) == "A1"

    def test_missing_field_raises_error(self):
        validator = RequiredFieldValidator("sku")

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(None, {"name": "Widget"})

        assert exc_info.value.field_name == "sku"
        assert exc_info.value.rule_name == "required_field"

    def test_whitespace_only_raises_error(self):
        validator = RequiredFieldValidator("name", {"message": "Name is required"})

        with pytest.raises(ValidationError) as exc_info:
            validator.validate("   ", {"name": "   "})

        assert exc_info.value.message == "Name is required"


@pytest.mark.unit
class TestIntegerValidator:
    """Tests for IntegerValidator"""

    @pytest.mark.parametrize("text,expected", [("42", 42), ("+5", 5), ("-3", -3), ("007", 7), (" 9 ", 9)])
    def test_accepts_integers(self, text, expected):
        assert IntegerValidator("quantity").validate(text, {}) == expected

    @pytest.mark.parametrize("text", ["", "1.0", "1e3", "0x10", "abc", "ten", "1_000", "٣", "--1", None])
    def test_rejects_non_integers(self, text):
        with pytest.raises(ValidationError) as exc_info:
            IntegerValidator("quantity", {"message": "Quantity must be an integer"}).validate(text, {})

        assert exc_info.value.message == "Quantity must be an integer"

    @given(st.integers(min_value=-10**12, max_value=10**12))
    def test_property_round_trips_decimal_text(self, value):
        """Property test: any decimal rendering parses back to the same int"""
        assert parse_int(str(value)) == value

    @given(st.text(alphabet="0123456789", min_size=1, max_size=20))
    def test_property_leading_zeros_allowed(self, digits):
        """Property test: digit strings always parse"""
        assert parse_int(digits) == int(digits)


@pytest.mark.unit
class TestRangeValidator:
    """Tests for RangeValidator"""

    def test_min_is_inclusive(self):
        assert RangeValidator("quantity", {"min": 0}).validate(0, {}) == 0

    def test_below_min_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            RangeValidator("quantity", {"min": 0}).validate(-1, {})

        assert exc_info.value.rule_name == "range"

    def test_above_max_raises(self):
        with pytest.raises(ValidationError):
            RangeValidator("quantity", {"max": 100}).validate(101, {})

    def test_max_message_overrides_message_above_max(self):
        validator = RangeValidator("quantity", {"min": 0, "max": 100, "message": "too low", "max_message": "too high"})

        with pytest.raises(ValidationError, match="too high"):
            validator.validate(101, {})
        with pytest.raises(ValidationError, match="too low"):
            validator.validate(-1, {})

    def test_max_is_inclusive(self):
        assert RangeValidator("quantity", {"max": 100}).validate(100, {}) == 100

    def test_requires_a_bound(self):
        with pytest.raises(ValueError):
            RangeValidator("quantity", {})

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError):
            RangeValidator("quantity", {"min": 0}).validate("5", {})


@pytest.mark.unit
class TestRowValidator:
    """Tests for the ordered product rules"""

    def test_valid_row(self):
        verdict = RowValidator().validate(make_row())

        assert verdict.passed
        assert verdict.error is None
        assert (verdict.sku, verdict.name, verdict.quantity, verdict.threshold) == ("A1", "Widget", 10, 2)

    def test_headers_matched_case_insensitively(self):
        verdict = RowValidator().validate({"SKU": "S1", "Name": "Schraube", "QUANTITY": "40", "Threshold": "10"})

        assert verdict.passed
        assert verdict.sku == "S1"
        assert verdict.quantity == 40

    def test_values_trimmed(self):
        verdict = RowValidator().validate(make_row(sku="  A1 ", name=" Widget  ", quantity=" 10"))

        assert verdict.sku == "A1"
        assert verdict.name == "Widget"
        assert verdict.quantity == 10

    def test_zero_quantity_and_threshold_pass(self):
        verdict = RowValidator().validate(make_row(quantity="0", threshold="0"))

        assert verdict.passed
        assert verdict.quantity == 0

    def test_largest_postgres_integer_passes(self):
        verdict = RowValidator().validate(make_row(quantity="2147483647", threshold="2147483647"))

        assert verdict.passed
        assert verdict.quantity == MAX_COUNT
        assert verdict.threshold == MAX_COUNT

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"sku": ""}, "SKU is required"),
            ({"sku": "   "}, "SKU is required"),
            ({"name": ""}, "Name is required"),
            ({"quantity": "ten"}, "Quantity must be an integer"),
            ({"quantity": "1.5"}, "Quantity must be an integer"),
            ({"quantity": "-1"}, "Quantity cannot be negative"),
            ({"threshold": "abc"}, "Threshold must be an integer"),
            ({"threshold": ""}, "Threshold must be an integer"),
            ({"threshold": "-3"}, "Threshold cannot be negative"),
            ({"quantity": "2147483648"}, "Quantity is too large"),
            ({"quantity": "99999999999999999999"}, "Quantity is too large"),
            ({"threshold": "2147483648"}, "Threshold is too large"),
        ],
    )
    def test_rule_messages(self, overrides, message):
        verdict = RowValidator().validate(make_row(**overrides))

        assert not verdict.passed
        assert verdict.error == message
        assert verdict.sku is None
        assert verdict.quantity is None

    def test_first_failure_wins(self):
        verdict = RowValidator().validate({"sku": "", "name": "", "quantity": "x", "threshold": "-1"})

        assert verdict.error == "SKU is required"
        assert verdict.failed_field == "sku"
        assert verdict.failed_rule == "required_field"

    def test_quantity_checked_before_threshold(self):
        verdict = RowValidator().validate(make_row(quantity="-1", threshold="abc"))

        assert verdict.error == "Quantity cannot be negative"

    def test_missing_key_treated_as_empty(self):
        verdict = RowValidator().validate({"sku": "A1", "name": "Widget", "quantity": "1"})

        assert verdict.error == "Threshold must be an integer"

    def test_validate_batch(self):
        verdicts = RowValidator().validate_batch([make_row(), make_row(sku="")])

        assert [v.passed for v in verdicts] == [True, False]

    def test_rule_summary(self):
        summary = RowValidator().get_rule_summary()

        assert summary["total_rules"] == 6
        assert summary["rules_by_type"] == {"required_field": 2, "integer": 2, "range": 2}

    @given(
        quantity=st.integers(min_value=0, max_value=10**9),
        threshold=st.integers(min_value=0, max_value=10**9),
    )
    def test_property_non_negative_integers_pass(self, quantity, threshold):
        """Property test: any non-negative pair is accepted unchanged"""
        verdict = RowValidator().validate(make_row(quantity=str(quantity), threshold=str(threshold)))

        assert verdict.passed
        assert verdict.quantity == quantity
        assert verdict.threshold == threshold

    @given(quantity=st.integers(min_value=MAX_COUNT + 1))
    def test_property_oversized_quantity_rejected(self, quantity):
        """Property test: anything past the INTEGER column range is rejected"""
        verdict = RowValidator().validate(make_row(quantity=str(quantity)))

        assert verdict.error == "Quantity is too large"
        assert verdict.failed_rule == "range"

    @given(quantity=st.integers(max_value=-1))
    def test_property_negative_quantity_rejected(self, quantity):
        """Property test: any negative quantity is rejected with the same reason"""
        verdict = RowValidator().validate(make_row(quantity=str(quantity)))

        assert verdict.error == "Quantity cannot be negative"


@pytest.mark.unit
class TestHeaderHelpers:
    """Tests for normalize_row and find_missing_column"""

    def test_normalize_row_lowercases_and_trims_keys(self):
        assert normalize_row({" SKU ": "A1", "Name": "W"}) == {"sku": "A1", "name": "W"}

    def test_normalize_row_first_key_wins(self):
        assert normalize_row({"SKU": "first", "sku": "second"}) == {"sku": "first"}

    def test_all_columns_present(self):
        assert find_missing_column(["SKU", "Name", "Quantity", "Threshold", "extra"]) is None

    def test_reports_first_missing_column(self):
        assert find_missing_column(["sku", "name", "quantity"]) == "threshold"
        assert find_missing_column(["name"]) == "sku"
        assert find_missing_column([]) == "sku"
