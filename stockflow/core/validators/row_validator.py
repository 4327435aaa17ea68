"""
Row validator for staged product rows.

Applies the product rules in a fixed order and stops at the first failure,
so each rejected row carries exactly one reason.
"""

from typing import Any, Iterable, Mapping

from stockflow.core.models import RowVerdict
from stockflow.observability import metrics

from .base_validator import BaseValidator, ValidationError
from .range_validator import RangeValidator
from .required_field_validator import RequiredFieldValidator
from .type_validator import IntegerValidator

REQUIRED_COLUMNS = ("sku", "name", "quantity", "threshold")

# Quantity and threshold columns are PostgreSQL INTEGER.
MAX_COUNT = 2_147_483_647


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Lower-case and trim header keys once so lookups are case-insensitive.

    If two headers collapse to the same key the first one wins.
    """
    normalized: dict[str, Any] = {}
    for key, value in row.items():
        normalized.setdefault(str(key).strip().lower(), value)
    return normalized


def find_missing_column(columns: Iterable[str]) -> str | None:
    """
    Check the header against the required columns.

    Args:
        columns: Header names as parsed (any case)

    Returns:
        The first required column absent from the header, or None
    """
    present = {str(c).strip().lower() for c in columns}
    for column in REQUIRED_COLUMNS:
        if column not in present:
            return column
    return None


def default_rules() -> list[BaseValidator]:
    """The product row rules, in evaluation order."""
    return [
        RequiredFieldValidator("sku", {"message": "SKU is required"}),
        RequiredFieldValidator("name", {"message": "Name is required"}),
        IntegerValidator("quantity", {"message": "Quantity must be an integer"}),
        RangeValidator("quantity", {
            "min": 0,
            "max": MAX_COUNT,
            "message": "Quantity cannot be negative",
            "max_message": "Quantity is too large",
        }),
        IntegerValidator("threshold", {"message": "Threshold must be an integer"}),
        RangeValidator("threshold", {
            "min": 0,
            "max": MAX_COUNT,
            "message": "Threshold cannot be negative",
            "max_message": "Threshold is too large",
        }),
    ]


class RowValidator:
    """
    Validates one row mapping of column name -> raw string.

    Usage:
        verdict = RowValidator().validate({"SKU": "A1", "Name": "Widget",
                                           "Quantity": "10", "Threshold": "2"})
        verdict.passed  # True
    """

    def __init__(self, rules: list[BaseValidator] | None = None):
        self.rules = rules if rules is not None else default_rules()

    def validate(self, row: Mapping[str, Any]) -> RowVerdict:
        """
        Validate a row.

        Args:
            row: Column name -> raw value. Keys are matched case-insensitively.

        Returns:
            RowVerdict with normalized fields, or the first failing rule's reason
        """
        record = normalize_row(row)
        values = dict(record)

        for validator in self.rules:
            field = validator.field_name
            try:
                values[field] = validator.validate(values.get(field), record)
            except ValidationError as e:
                metrics.record_validation_failure(e.rule_name, e.field_name)
                return RowVerdict(
                    passed=False,
                    error=e.message,
                    failed_rule=e.rule_name,
                    failed_field=e.field_name,
                )

        return RowVerdict(
            passed=True,
            sku=values["sku"],
            name=values["name"],
            quantity=values["quantity"],
            threshold=values["threshold"],
        )

    def validate_batch(self, rows: list[Mapping[str, Any]]) -> list[RowVerdict]:
        return [self.validate(row) for row in rows]

    def get_rule_summary(self) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for validator in self.rules:
            counts[validator.rule_type] = counts.get(validator.rule_type, 0) + 1
        return {"total_rules": len(self.rules), "rules_by_type": counts}
