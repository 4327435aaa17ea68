"""
IntegerValidator - parses base-10 integer text.
"""

import re
from typing import Any

from .base_validator import BaseValidator

# Optional sign then ASCII digits; int() alone would also accept "1_000" and
# non-ASCII digits.
INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def parse_int(value: Any) -> int | None:
    """Parse a base-10 integer, returning None if the text is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not INTEGER_PATTERN.match(text):
        return None
    return int(text)


class IntegerValidator(BaseValidator):
    """
    Validates that a field holds a base-10 integer and coerces it to int.

    Accepts "42", "+5", "-3", "007". Rejects "", "1.0", "1e3", "0x10", "abc".
    """

    def validate(self, value: Any, record: dict[str, Any]) -> int:
        parsed = parse_int(value)
        if parsed is None:
            raise self.fail(f"{self.field_name} must be an integer")
        return parsed

    @property
    def rule_type(self) -> str:
        return "integer"
