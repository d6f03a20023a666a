"""Parsing of raw form values coming from the UI."""

import math
from datetime import date, datetime
from typing import Any

from errors import FormValidationError


def parse_amount(value: Any, field: str, allow_zero: bool = False) -> float:
    """Reads a form number; rejects blanks, text, NaN/inf and non-positive values."""
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise FormValidationError(f"{field} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise FormValidationError(f"{field} must be a number") from None
    if not math.isfinite(number):
        raise FormValidationError(f"{field} must be a number")
    if number < 0 or (number == 0 and not allow_zero):
        raise FormValidationError(f"{field} must be greater than zero")
    return number


def parse_date(value: Any, default: date) -> date:
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise FormValidationError(f"Invalid date: {value}") from None
