"""
Hysteresis Policy

Pure threshold checks for opening and closing the heating valve. The dead
zone between the two thresholds keeps the valve from chattering when the
temperature hovers around the setpoint.
"""

import logging
from enum import Enum

from .models import Temperature

logger = logging.getLogger(__name__)


class HysteresisResult(Enum):
    OPEN = "open"
    CLOSED = "closed"
    HOLD = "hold"


def decide_heating(
    setpoint: float,
    current: float,
    valve_is_open: bool,
    half_band: float,
) -> HysteresisResult:
    """Decide the heating valve target for a temperature around a setpoint.

    Open at or below setpoint - half_band, closed at or above
    setpoint + half_band, hold in between. With half_band == 0 a reading
    exactly on the setpoint still holds.

    Args:
        setpoint: Heat setpoint (°C)
        current: Measured temperature (°C)
        valve_is_open: Currently reported valve state
        half_band: Distance from the setpoint to each threshold (°C, >= 0)

    Returns:
        OPEN, CLOSED or HOLD

    Raises:
        ValueError: If half_band is negative
    """
    if half_band < 0:
        raise ValueError(f"half_band must be >= 0, got {half_band}")

    on_threshold = setpoint - half_band
    off_threshold = setpoint + half_band

    if half_band == 0 and current == setpoint:
        result = HysteresisResult.HOLD
    elif current <= on_threshold:
        result = HysteresisResult.OPEN
    elif current >= off_threshold:
        result = HysteresisResult.CLOSED
    else:
        result = HysteresisResult.HOLD

    logger.debug(
        f"Hysteresis: T={current} on<={on_threshold} off>={off_threshold} "
        f"valve_open={valve_is_open} -> {result.value}"
    )
    return result


def effective_cool_setpoint(
    heat_setpoint: Temperature,
    cool_setpoint: Temperature,
    min_gap: float,
) -> Temperature:
    """Cool setpoint used by AUTO mode, pushed up to keep min_gap above heat.

    Only applies when both setpoints are valid; otherwise the cool setpoint
    is returned unchanged (possibly Invalid).
    """
    if (
        heat_setpoint.is_valid
        and cool_setpoint.is_valid
        and cool_setpoint.celsius < heat_setpoint.celsius + min_gap
    ):
        return Temperature(heat_setpoint.celsius + min_gap)
    return cool_setpoint


def auto_warm_cutoff(effective_cool: float, cool_hysteresis: float) -> float:
    """Temperature at or above which AUTO mode keeps the heating valve closed."""
    return effective_cool - cool_hysteresis / 2


def auto_open_threshold(heat_setpoint: float, heat_hysteresis: float) -> float:
    """Temperature at or below which AUTO mode opens the heating valve."""
    return heat_setpoint - heat_hysteresis / 2
