"""
RequiredFieldValidator - ensures a field is present and not blank.
"""

from typing import Any, Dict

from .base_validator import BaseValidator


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field is present and non-empty after trimming.

    Fails if:
    - Field is missing from the record
    - Field value is None
    - Field value is blank once whitespace is stripped

    Returns the trimmed string.
    """

    def validate(self, value: Any, record: Dict[str, Any]) -> str:
        if self.field_name not in record or value is None:
            raise self.fail(f"{self.field_name} is required")

        text = str(value).strip()
        if not text:
            raise self.fail(f"{self.field_name} is required")

        return text

    @property
    def rule_type(self) -> str:
        return "required_field"
