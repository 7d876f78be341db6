"""
Measurement Normalization

Turns whatever a sensor hands us into a Celsius Temperature or the Invalid
marker. Malformed input never raises here; the controller decides what an
Invalid reading means for the active mode.

Accepted shapes:
- Measurement, or any object with a to_celsius() method
- Home Assistant state dict ({"state": "21.5", "attributes": {...}})
- int / float (already Celsius)
- str ("21.5", "21.5 °C"); the leading number is used, the suffix ignored
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from .models import INVALID, Measurement, Temperature

logger = logging.getLogger(__name__)

# Longest leading float, the way a lenient parser reads "21.5 °C"
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float_prefix(text: str) -> float | None:
    """Parse the leading floating point number of a string.

    Args:
        text: Raw text such as "21.5", " 21.5 °C" or "unavailable"

    Returns:
        The parsed number, or None if the text does not start with one
    """
    match = _LEADING_FLOAT.match(text)
    if not match:
        return None
    return float(match.group(1))


def _to_float(number: int | float) -> float | None:
    """float() that maps ints beyond float range to None."""
    try:
        return float(number)
    except OverflowError:
        return None


def _from_state_dict(state: Mapping) -> Temperature:
    """Normalize a Home Assistant entity state."""
    raw_value = state.get("state")
    attributes = state.get("attributes")
    unit = attributes.get("unit_of_measurement") if isinstance(attributes, Mapping) else None

    if unit is None:
        return normalize(raw_value)

    if isinstance(raw_value, str):
        value = parse_float_prefix(raw_value)
    elif isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        value = _to_float(raw_value)
    else:
        value = None

    if value is None:
        return INVALID
    return normalize(Measurement(value, unit))


def normalize(raw: Any) -> Temperature:
    """Convert a heterogeneous temperature representation to Celsius.

    Args:
        raw: Measurement, state dict, number, string or None

    Returns:
        A valid Temperature, or INVALID for absent/unparsable/non-finite input
    """
    if raw is None:
        return INVALID

    if isinstance(raw, Temperature):
        return raw

    if hasattr(raw, "to_celsius"):
        try:
            value = float(raw.to_celsius())
        except (TypeError, ValueError, OverflowError) as e:
            logger.debug(f"Cannot convert {raw!r} to Celsius: {e}")
            return INVALID
    elif isinstance(raw, Mapping):
        return _from_state_dict(raw)
    elif isinstance(raw, bool):
        return INVALID
    elif isinstance(raw, (int, float)):
        value = _to_float(raw)
        if value is None:
            return INVALID
    elif isinstance(raw, str):
        parsed = parse_float_prefix(raw)
        if parsed is None:
            return INVALID
        value = parsed
    else:
        # Last resort: its string form, e.g. a quantity that prints "21 °C"
        parsed = parse_float_prefix(str(raw))
        if parsed is None:
            return INVALID
        value = parsed

    if not math.isfinite(value):
        return INVALID
    return Temperature(value)
