"""Normalization of metadata values into JSON-friendly primitives."""
from __future__ import annotations

import math
import numbers
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from .models import SerializableValue


def to_iso_utc(value: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC instant with milliseconds.

    Naive datetimes are taken as local time.

    >>> to_iso_utc(datetime(2024, 1, 1, tzinfo=timezone.utc))
    '2024-01-01T00:00:00.000Z'
    """
    utc = value.astimezone(timezone.utc)
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
        f".{utc.microsecond // 1000:03d}Z"
    )


def _date_to_string(value: Any) -> str:
    if isinstance(value, datetime):
        return to_iso_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    converted = value.to_date()
    if isinstance(converted, datetime):
        return to_iso_utc(converted)
    if isinstance(converted, date):
        return converted.isoformat()
    raise TypeError(f"to_date() returned {type(converted).__name__}")


def _is_date_like(value: Any) -> bool:
    return isinstance(value, date) or callable(getattr(value, "to_date", None))


def _coerce_primitive(value: Any) -> Any:
    """Return a str/number for values with a natural primitive form, else None."""
    if isinstance(value, Enum):
        inner = value.value
        if isinstance(inner, (str, int, float)) and not isinstance(inner, bool):
            return inner
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Number) and hasattr(value, "__float__"):
        result = float(value)
        # rationals with a zero denominator are handled as rationals
        if not math.isfinite(result) and _has_rational_fields(value):
            return None
        return result
    return None


def _rational_value(value: Any) -> Any:
    num = getattr(value, "numerator", None)
    den = getattr(value, "denominator", None)
    if not isinstance(num, numbers.Real) or not isinstance(den, numbers.Real):
        return None
    if den == 0:
        return None
    return num / den


def _has_rational_fields(value: Any) -> bool:
    return (
        isinstance(getattr(value, "numerator", None), numbers.Real)
        and isinstance(getattr(value, "denominator", None), numbers.Real)
    )


def _fallback_string(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return repr(value)


def to_serializable(value: Any) -> SerializableValue:
    """Convert a tag value into a string, number, boolean, list or None.

    Never raises: anything without a better representation becomes its
    string form.

    Args:
        value: Raw value from a tag reader.

    Returns:
        A value safe to store as JSON.
    """
    if value is None:
        return None

    if isinstance(value, (str, int, float, bool)) and not isinstance(value, Enum):
        return value

    if _is_date_like(value):
        try:
            return _date_to_string(value)
        except Exception:
            return _fallback_string(value)

    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]

    try:
        primitive = _coerce_primitive(value)
    except Exception:
        primitive = None
    if primitive is not None:
        return primitive

    if _has_rational_fields(value):
        try:
            return _rational_value(value)
        except Exception:
            return None

    return _fallback_string(value)
