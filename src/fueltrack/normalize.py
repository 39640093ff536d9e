"""Normalization helpers.

Centralizes numeric coercion, rounding and timestamp parsing so the
tracker and the models agree on how caller input is interpreted.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from typing import Any

from fueltrack._constants import ROUND_DIGITS
from fueltrack.exceptions import RecordValidationError

# Threshold to distinguish epoch seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def coerce_amount(value: Any, field: str) -> float:
    """Coerce a fuel amount or distance to a finite float.

    Raises :class:`RecordValidationError` for missing, non-numeric or
    infinite input.
    """
    parsed = safe_float(value)
    if parsed is None or math.isinf(parsed):
        raise RecordValidationError(f"{field} must be a finite number, got {value!r}")
    return parsed


def round_to(value: float, digits: int = ROUND_DIGITS) -> float:
    return round(value, digits)


def compute_consumption(distance: float, fuel_amount: float) -> float:
    """Distance per unit of fuel, rounded to two decimals."""
    return round_to(distance / fuel_amount)


def parse_timestamp(value: Any) -> datetime:
    """Convert caller input into a timezone-aware UTC datetime.

    Accepts ``datetime`` and ``date`` objects, ISO-8601 strings (a
    trailing ``Z`` and date-only forms included) and epoch numbers in
    seconds or milliseconds. Naive values are interpreted as UTC.

    Malformed strings and unsupported types raise :class:`ValueError`.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"cannot interpret {type(value).__name__} as a timestamp")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
