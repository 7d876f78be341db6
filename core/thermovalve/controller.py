"""
Thermostat Valve Controller

Decides, once per event, whether to leave the heating valve alone or command
it open/closed. The decision is a pure function of the snapshot passed in:
mode, heat and cool setpoints, measured temperature and the valve state the
actuator reports. Nothing is remembered between calls.

Evaluation order:
1. Invalid temperature -> no action, warning
2. OFF / COOL -> valve closed
3. HEAT -> hysteresis around the heat setpoint
4. AUTO -> closed near the (gap-enforced) cool setpoint, else open when
   clearly below the heat setpoint, else hold
5. Anything else -> no action, error

A command is only issued when it differs from the reported valve state, so
repeated evaluation after the actuator caught up yields no action.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Protocol

from .exceptions import UnknownModeError
from .hysteresis import (
    HysteresisResult,
    auto_open_threshold,
    auto_warm_cutoff,
    decide_heating,
    effective_cool_setpoint,
)
from .measurement import normalize
from .models import (
    Decision,
    Diagnostic,
    DiagnosticCode,
    DiagnosticLevel,
    OperatingMode,
    Setpoint,
    Temperature,
    ValveState,
)
from .modes import ModeTable, resolve
from .settings import HysteresisConfig

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    DiagnosticLevel.INFO: logging.INFO,
    DiagnosticLevel.WARNING: logging.WARNING,
    DiagnosticLevel.ERROR: logging.ERROR,
}


class DiagnosticsSink(Protocol):
    """Receives diagnostics for operational visibility."""

    def emit(self, diagnostic: Diagnostic) -> None: ...


class LoggingSink:
    """Forwards diagnostics to a standard library logger."""

    def __init__(self, name: str | None = None, log: logging.Logger | None = None):
        self.name = name
        self._logger = log or logger

    def emit(self, diagnostic: Diagnostic) -> None:
        prefix = f"[{self.name}] " if self.name else ""
        self._logger.log(_LOG_LEVELS[diagnostic.level], f"{prefix}{diagnostic.message}")


def _as_temperature(value: Any) -> Temperature:
    if isinstance(value, Setpoint):
        return value.temperature
    if isinstance(value, Temperature):
        return value
    return normalize(value)


def _valve_label(valve_is_open: bool) -> str:
    return "ON" if valve_is_open else "OFF"


def _close_valve(valve_is_open: bool, reason: str, *diagnostics: Diagnostic) -> Decision:
    """Close the valve if it is open, otherwise leave it."""
    if valve_is_open:
        return Decision.set_valve(
            ValveState.CLOSED, *diagnostics, Diagnostic.info(f"{reason} -> close valve")
        )
    return Decision.no_action(*diagnostics, Diagnostic.info(f"{reason} -> valve stays closed"))


def _evaluate_heat(
    heat: Temperature, temp: float, valve_is_open: bool, config: HysteresisConfig
) -> Decision:
    if not heat.is_valid:
        return Decision.no_action(
            Diagnostic.warning("HEAT: missing heat setpoint - doing nothing", DiagnosticCode.MISSING_SETPOINT)
        )

    half_band = config.heat_half_band
    result = decide_heating(heat.celsius, temp, valve_is_open, half_band)

    if result is HysteresisResult.OPEN and not valve_is_open:
        return Decision.set_valve(
            ValveState.OPEN, Diagnostic.info(f"HEAT: T<={heat.celsius - half_band} -> open valve")
        )
    if result is HysteresisResult.CLOSED and valve_is_open:
        return Decision.set_valve(
            ValveState.CLOSED, Diagnostic.info(f"HEAT: T>={heat.celsius + half_band} -> close valve")
        )
    if result is HysteresisResult.HOLD:
        return Decision.no_action(Diagnostic.info("HEAT: within hysteresis band -> keep current state"))
    return Decision.no_action(
        Diagnostic.info(f"HEAT: valve already {_valve_label(valve_is_open)} -> keep current state")
    )


def _evaluate_auto(
    heat: Temperature,
    cool: Temperature,
    temp: float,
    valve_is_open: bool,
    config: HysteresisConfig,
) -> Decision:
    # Heating valve only participates in heating; near the cool setpoint it stays closed
    cool_for_logic = effective_cool_setpoint(heat, cool, config.auto_min_gap)
    gap_note = ()
    if cool_for_logic != cool:
        gap_note = (
            Diagnostic.info(
                f"AUTO: CoolSet={cool.celsius} too close to HeatSet={heat.celsius}, "
                f"using {cool_for_logic.celsius}"
            ),
        )

    if cool_for_logic.is_valid:
        cutoff = auto_warm_cutoff(cool_for_logic.celsius, config.cool_hysteresis)
        if temp >= cutoff:
            return _close_valve(
                valve_is_open,
                f"AUTO: T>=CoolSet({cool_for_logic.celsius})-{config.cool_half_band}",
                *gap_note,
            )

    if not heat.is_valid:
        return Decision.no_action(
            *gap_note,
            Diagnostic.warning("AUTO: missing heat setpoint - doing nothing", DiagnosticCode.MISSING_SETPOINT),
        )

    on_threshold = auto_open_threshold(heat.celsius, config.heat_hysteresis)
    if temp <= on_threshold and not valve_is_open:
        return Decision.set_valve(
            ValveState.OPEN, *gap_note, Diagnostic.info(f"AUTO/HEAT: T<={on_threshold} -> open valve")
        )
    # Comfort zone: AUTO never closes on the heat side, only via the warm cutoff
    return Decision.no_action(*gap_note, Diagnostic.info("AUTO/HEAT: in comfort zone -> keep current state"))


def evaluate(
    mode: OperatingMode,
    heat_setpoint: Setpoint | Temperature | Any,
    cool_setpoint: Setpoint | Temperature | Any,
    temperature: Temperature | Any,
    valve_is_open: bool,
    config: HysteresisConfig | None = None,
) -> Decision:
    """Decide what to do with the heating valve.

    Args:
        mode: Canonical operating mode
        heat_setpoint: Heat setpoint; raw values are normalized
        cool_setpoint: Cool setpoint; raw values are normalized
        temperature: Measured temperature; raw values are normalized
        valve_is_open: Valve state currently reported by the actuator
        config: Hysteresis tunables (defaults when None)

    Returns:
        Decision with the valve command (or none) and its diagnostics
    """
    config = config or HysteresisConfig()
    heat = _as_temperature(heat_setpoint)
    cool = _as_temperature(cool_setpoint)
    temp = _as_temperature(temperature)

    mode_label = mode.name if isinstance(mode, OperatingMode) else repr(mode)
    snapshot = Diagnostic.info(
        f"Mode={mode_label}  T={temp}  HeatSet={heat}  CoolSet={cool}  Valve={_valve_label(valve_is_open)}"
    )

    if not temp.is_valid:
        return Decision.no_action(
            snapshot,
            Diagnostic.warning("No valid current temperature - doing nothing", DiagnosticCode.INVALID_MEASUREMENT),
        )

    if mode is OperatingMode.OFF or mode is OperatingMode.COOL:
        decision = _close_valve(valve_is_open, "Mode OFF/COOL")
    elif mode is OperatingMode.HEAT:
        decision = _evaluate_heat(heat, temp.celsius, valve_is_open, config)
    elif mode is OperatingMode.AUTO:
        decision = _evaluate_auto(heat, cool, temp.celsius, valve_is_open, config)
    else:
        decision = Decision.no_action(
            Diagnostic.error(f"Unexpected mode: {mode!r}", DiagnosticCode.UNKNOWN_OPERATING_MODE)
        )

    return decision.with_diagnostics(snapshot)


def evaluate_raw(
    raw_mode: Any,
    mode_table: Mapping,
    raw_heat_setpoint: Any,
    raw_cool_setpoint: Any,
    raw_temperature: Any,
    valve_is_open: bool,
    config: HysteresisConfig | None = None,
) -> Decision:
    """Normalize raw item values, resolve the mode, then evaluate.

    An unknown raw mode yields no action with an error naming the value.
    """
    try:
        mode = resolve(raw_mode, mode_table)
    except UnknownModeError as e:
        return Decision.no_action(
            Diagnostic.error(f"Unexpected mode: {e.raw_mode!r} not in mode table", DiagnosticCode.UNKNOWN_MODE)
        )

    return evaluate(
        mode,
        Setpoint.heat(normalize(raw_heat_setpoint)),
        Setpoint.cool(normalize(raw_cool_setpoint)),
        normalize(raw_temperature),
        valve_is_open,
        config,
    )


def emit_all(sink: DiagnosticsSink, diagnostics: Iterable[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        sink.emit(diagnostic)


class ThermostatController:
    """Controller bound to one thermostat's configuration and diagnostics sink."""

    def __init__(
        self,
        mode_table: ModeTable,
        config: HysteresisConfig | None = None,
        sink: DiagnosticsSink | None = None,
    ):
        """Initialize controller.

        Args:
            mode_table: Raw mode identifier -> OperatingMode table
            config: Hysteresis tunables
            sink: Where diagnostics go (logging when None)
        """
        self.mode_table = mode_table
        self.config = config or HysteresisConfig()
        self.sink = sink or LoggingSink()

    def decide(
        self,
        raw_mode: Any,
        raw_heat_setpoint: Any,
        raw_cool_setpoint: Any,
        raw_temperature: Any,
        valve_is_open: bool,
    ) -> Decision:
        """Evaluate one snapshot and emit its diagnostics."""
        decision = evaluate_raw(
            raw_mode,
            self.mode_table,
            raw_heat_setpoint,
            raw_cool_setpoint,
            raw_temperature,
            valve_is_open,
            self.config,
        )
        emit_all(self.sink, decision.diagnostics)
        return decision
