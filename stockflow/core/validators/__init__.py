"""
Validation rule implementations.

Provides validators for required fields, integer parsing and ranges, and the
RowValidator that chains them for product rows.
"""

from .base_validator import BaseValidator, ValidationError
from .range_validator import RangeValidator
from .required_field_validator import RequiredFieldValidator
from .row_validator import (
    REQUIRED_COLUMNS,
    RowValidator,
    default_rules,
    find_missing_column,
    normalize_row,
)
from .type_validator import IntegerValidator, parse_int

__all__ = [
    "BaseValidator",
    "ValidationError",
    "RequiredFieldValidator",
    "IntegerValidator",
    "RangeValidator",
    "RowValidator",
    "REQUIRED_COLUMNS",
    "default_rules",
    "find_missing_column",
    "normalize_row",
    "parse_int",
]
