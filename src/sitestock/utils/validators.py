"""
Input validation helpers for ledger services.

Each validator returns a (is_valid, error_message) tuple so services can
collect several problems before raising a single ValidationError.
"""

import math
from typing import Any, Optional, Tuple

from .constants import (
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_REQUIRED_FIELD,
    ERROR_TOO_LONG,
)


def sanitize_string(value: Optional[Any]) -> Optional[str]:
    """
    Trim a string input; blank strings become None.

    Examples:
        >>> sanitize_string("  Site A ")
        'Site A'
        >>> sanitize_string("   ") is None
        True
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a string is present and not blank."""
    if sanitize_string(value) is None:
        return False, ERROR_REQUIRED_FIELD.format(field=field_name)
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """Validate string length (None is considered valid)."""
    if value is not None and len(value) > max_length:
        return False, ERROR_TOO_LONG.format(field=field_name, max_length=max_length)
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a value is a number >= 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False, ERROR_INVALID_NUMBER.format(field=field_name)
    if not math.isfinite(number):
        return False, ERROR_INVALID_NUMBER.format(field=field_name)
    if number < 0:
        return False, ERROR_INVALID_NON_NEGATIVE.format(field=field_name)
    return True, ""


def clamp_quantity(value: Any) -> float:
    """
    Coerce a movement quantity to a float floored at zero.

    None counts as zero; negative quantities are treated as zero.

    Raises:
        ValueError: If the value is NaN or infinite
    """
    if value is None:
        return 0.0
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Quantity must be a finite number, got {value!r}")
    return max(0.0, number)
