"""Validation of incoming metric payloads.

Checks run in a fixed order and the first failure wins:

1. date is required
2. date must look like YYYY-MM-DD
3. date must not be after today (server-local)
4. steps are required
5. heart rate is required
6. steps must be a non-negative integer that fits a 64-bit column
7. heart rate must be an integer between 30 and 220

Comparing ``YYYY-MM-DD`` strings lexically is the same as comparing the
calendar dates, so the future check never parses the date.
"""

import math
import re
from datetime import date
from typing import Any, Mapping, Optional

from ..models.metric import MetricInput
from .errors import ValidationError

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
DECIMAL_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

# Largest value a 64-bit integer column can hold
MAX_STORED_INTEGER = 2**63 - 1

MIN_HEART_RATE = 30
MAX_HEART_RATE = 220


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def to_integer(value: Any) -> Optional[int]:
    """Coerce a raw form or JSON value to an int, or None if it isn't integral.

    Accepts ints, integral finite floats and numeric strings ("72", " 72 ",
    "8500.0", "1e3"). Booleans are not numbers here.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if INTEGER_PATTERN.fullmatch(text):
            return int(text)
        if DECIMAL_PATTERN.fullmatch(text):
            number = float(text)
            if math.isfinite(number) and number.is_integer():
                return int(number)
    return None


def validate_metric(payload: Mapping[str, Any], today: Optional[date] = None) -> MetricInput:
    """Validate a candidate payload and return it normalized.

    Raises ValidationError with a single message on the first failed check.
    """
    today_str = (today or date.today()).isoformat()
    entry_date = payload.get("date")
    steps = payload.get("steps")
    heart_rate = payload.get("heart_rate")

    if not entry_date:
        raise ValidationError("Date is required")
    if not isinstance(entry_date, str) or not DATE_PATTERN.fullmatch(entry_date):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    if entry_date > today_str:
        raise ValidationError("Date cannot be in the future")

    if _is_blank(steps):
        raise ValidationError("Steps are required")
    if _is_blank(heart_rate):
        raise ValidationError("Heart rate is required")

    steps_num = to_integer(steps)
    if steps_num is None or not 0 <= steps_num <= MAX_STORED_INTEGER:
        raise ValidationError("Steps must be a positive integer")

    heart_rate_num = to_integer(heart_rate)
    if heart_rate_num is None or not MIN_HEART_RATE <= heart_rate_num <= MAX_HEART_RATE:
        raise ValidationError(
            f"Heart rate must be between {MIN_HEART_RATE} and {MAX_HEART_RATE} bpm"
        )

    return MetricInput(date=entry_date, steps=steps_num, heart_rate=heart_rate_num)
