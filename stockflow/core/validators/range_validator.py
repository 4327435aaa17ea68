"""
RangeValidator - validates numeric values are within a specified range.
"""

from typing import Any

from .base_validator import BaseValidator, ValidationError


class RangeValidator(BaseValidator):
    """
    Validates that a numeric field is within an inclusive range.

    Parameters:
    - min: Minimum value (inclusive)
    - max: Maximum value (inclusive)
    - max_message: Failure message for the upper bound (defaults to message)
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_value = self.parameters.get("min")
        self.max_value = self.parameters.get("max")

        if self.min_value is None and self.max_value is None:
            raise ValueError("RangeValidator requires at least one of: min, max")

    def validate(self, value: Any, record: dict[str, Any]) -> Any:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise self.fail(f"{self.field_name} must be numeric, got {type(value).__name__}")

        if self.min_value is not None and value < self.min_value:
            raise self.fail(f"{self.field_name} {value} is less than minimum {self.min_value}")

        if self.max_value is not None and value > self.max_value:
            default = self.parameters.get(
                "message", f"{self.field_name} {value} exceeds maximum {self.max_value}"
            )
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=self.field_name,
                message=self.parameters.get("max_message", default),
            )

        return value

    @property
    def rule_type(self) -> str:
        return "range"
