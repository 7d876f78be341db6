import logging

import pytest

from thermovalve.controller import LoggingSink, ThermostatController, evaluate, evaluate_raw
from thermovalve.models import (
    INVALID,
    Diagnostic,
    DiagnosticCode,
    DiagnosticLevel,
    OperatingMode,
    Setpoint,
    Temperature,
    ValveState,
)
from thermovalve.modes import OPENHAB_HKV_MODES
from thermovalve.settings import HysteresisConfig

CONFIG = HysteresisConfig(heat_hysteresis=0.5, cool_hysteresis=0.5, auto_min_gap=1.0)


def heat(value) -> Setpoint:
    return Setpoint.heat(Temperature(value) if value is not None else INVALID)


def cool(value) -> Setpoint:
    return Setpoint.cool(Temperature(value) if value is not None else INVALID)


def run(mode, heat_set, cool_set, temp, valve_open, config=CONFIG):
    return evaluate(
        mode,
        heat(heat_set),
        cool(cool_set),
        Temperature(temp) if temp is not None else INVALID,
        valve_open,
        config,
    )


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.events.append(diagnostic)


# --- missing data -------------------------------------------------------------


@pytest.mark.parametrize("mode", list(OperatingMode))
@pytest.mark.parametrize("valve_open", [True, False])
def test_invalid_temperature_never_acts(mode, valve_open) -> None:
    decision = run(mode, 21.0, 24.0, None, valve_open)
    assert decision.is_no_action
    assert DiagnosticCode.INVALID_MEASUREMENT in decision.codes
    assert decision.warnings


def test_missing_heat_setpoint_in_heat_mode() -> None:
    decision = run(OperatingMode.HEAT, None, 24.0, 18.0, False)
    assert decision.is_no_action
    assert DiagnosticCode.MISSING_SETPOINT in decision.codes
    assert "missing heat setpoint" in decision.warnings[0].message


# --- OFF / COOL ---------------------------------------------------------------


@pytest.mark.parametrize("mode", [OperatingMode.OFF, OperatingMode.COOL])
@pytest.mark.parametrize("temp", [-5.0, 18.0, 21.0, 30.0])
def test_off_and_cool_keep_valve_closed(mode, temp) -> None:
    assert run(mode, 21.0, 24.0, temp, True).action is ValveState.CLOSED
    assert run(mode, 21.0, 24.0, temp, False).is_no_action


def test_off_ignores_missing_setpoints() -> None:
    assert run(OperatingMode.OFF, None, None, 20.0, True).action is ValveState.CLOSED


# --- HEAT ---------------------------------------------------------------------


@pytest.mark.parametrize("temp", [20.75, 20.0, 15.0])
def test_heat_opens_below_band(temp) -> None:
    assert run(OperatingMode.HEAT, 21.0, 24.0, temp, False).action is ValveState.OPEN


@pytest.mark.parametrize("temp", [20.76, 21.0, 21.24])
@pytest.mark.parametrize("valve_open", [True, False])
def test_heat_holds_inside_band(temp, valve_open) -> None:
    assert run(OperatingMode.HEAT, 21.0, 24.0, temp, valve_open).is_no_action


@pytest.mark.parametrize("temp", [21.25, 22.0])
def test_heat_closes_above_band(temp) -> None:
    assert run(OperatingMode.HEAT, 21.0, 24.0, temp, True).action is ValveState.CLOSED


def test_heat_does_not_repeat_command() -> None:
    assert run(OperatingMode.HEAT, 21.0, 24.0, 18.0, True).is_no_action
    assert run(OperatingMode.HEAT, 21.0, 24.0, 23.0, False).is_no_action


def test_zero_hysteresis_holds_on_setpoint() -> None:
    plain = HysteresisConfig(0, 0, 0)
    assert run(OperatingMode.HEAT, 21.0, 24.0, 21.0, False, plain).is_no_action
    assert run(OperatingMode.HEAT, 21.0, 24.0, 21.0, True, plain).is_no_action
    assert run(OperatingMode.HEAT, 21.0, 24.0, 20.9, False, plain).action is ValveState.OPEN


# --- AUTO ---------------------------------------------------------------------


def test_auto_enforces_minimum_gap() -> None:
    decision = run(OperatingMode.AUTO, 22.0, 21.0, 23.5, True)
    assert decision.action is ValveState.CLOSED
    assert any("using 23.0" in d.message for d in decision.diagnostics)


def test_auto_gap_moves_cutoff_above_raw_cool_setpoint() -> None:
    # Without the gap 21.5 would be past the cool cutoff of 20.75
    assert run(OperatingMode.AUTO, 22.0, 21.0, 21.5, False).action is ValveState.OPEN


@pytest.mark.parametrize("valve_open", [True, False])
def test_auto_comfort_zone_never_commands(valve_open) -> None:
    assert run(OperatingMode.AUTO, 20.0, 24.0, 22.0, valve_open).is_no_action


def test_auto_opens_when_cold() -> None:
    assert run(OperatingMode.AUTO, 20.0, 24.0, 19.75, False).action is ValveState.OPEN


def test_auto_closes_when_warm() -> None:
    assert run(OperatingMode.AUTO, 20.0, 24.0, 23.75, True).action is ValveState.CLOSED
    assert run(OperatingMode.AUTO, 20.0, 24.0, 23.75, False).is_no_action


def test_auto_warm_cutoff_wins_without_heat_setpoint() -> None:
    decision = run(OperatingMode.AUTO, None, 24.0, 25.0, True)
    assert decision.action is ValveState.CLOSED
    assert not decision.warnings


def test_auto_missing_heat_setpoint_below_cutoff() -> None:
    decision = run(OperatingMode.AUTO, None, 24.0, 18.0, False)
    assert decision.is_no_action
    assert DiagnosticCode.MISSING_SETPOINT in decision.codes


def test_auto_without_cool_setpoint_follows_heat_side() -> None:
    assert run(OperatingMode.AUTO, 21.0, None, 18.0, False).action is ValveState.OPEN
    assert run(OperatingMode.AUTO, 21.0, None, 30.0, True).is_no_action


# --- idempotence --------------------------------------------------------------


@pytest.mark.parametrize(
    "mode, heat_set, cool_set, temp",
    [
        (OperatingMode.HEAT, 21.0, 24.0, 18.0),
        (OperatingMode.HEAT, 21.0, 24.0, 23.0),
        (OperatingMode.OFF, 21.0, 24.0, 18.0),
        (OperatingMode.AUTO, 20.0, 24.0, 19.0),
        (OperatingMode.AUTO, 22.0, 21.0, 23.5),
    ],
)
def test_applying_decision_then_re_evaluating_is_no_action(mode, heat_set, cool_set, temp) -> None:
    for valve_open in (True, False):
        first = run(mode, heat_set, cool_set, temp, valve_open)
        if first.is_no_action:
            continue
        second = run(mode, heat_set, cool_set, temp, first.action is ValveState.OPEN)
        assert second.is_no_action


# --- unknown modes ------------------------------------------------------------


def test_unknown_raw_mode_names_value() -> None:
    decision = evaluate_raw("7", OPENHAB_HKV_MODES, 21.0, 24.0, 18.0, False, CONFIG)
    assert decision.is_no_action
    assert DiagnosticCode.UNKNOWN_MODE in decision.codes
    assert "'7'" in decision.errors[0].message


def test_non_canonical_mode_is_an_error() -> None:
    decision = evaluate("heat", heat(21.0), cool(24.0), Temperature(18.0), False, CONFIG)
    assert decision.is_no_action
    assert DiagnosticCode.UNKNOWN_OPERATING_MODE in decision.codes


# --- scenarios ----------------------------------------------------------------


def test_winter_morning() -> None:
    decision = evaluate_raw("4", OPENHAB_HKV_MODES, "21.0 °C", "24.0 °C", "18.5 °C", False, CONFIG)
    assert decision.action is ValveState.OPEN


def test_summer() -> None:
    decision = evaluate_raw("3", OPENHAB_HKV_MODES, 21.0, 24.0, 28.0, True, CONFIG)
    assert decision.action is ValveState.CLOSED


def test_raw_nan_setpoint_is_missing() -> None:
    decision = evaluate_raw("4", OPENHAB_HKV_MODES, float("nan"), 24.0, 18.0, False, CONFIG)
    assert decision.is_no_action
    assert DiagnosticCode.MISSING_SETPOINT in decision.codes


def test_first_diagnostic_describes_snapshot() -> None:
    decision = run(OperatingMode.HEAT, 21.0, 24.0, 18.5, False)
    snapshot = decision.diagnostics[0]
    assert snapshot.level is DiagnosticLevel.INFO
    assert "Mode=HEAT" in snapshot.message
    assert "T=18.5°C" in snapshot.message
    assert "Valve=OFF" in snapshot.message


# --- controller / sinks -------------------------------------------------------


def test_controller_emits_every_diagnostic() -> None:
    sink = RecordingSink()
    controller = ThermostatController(OPENHAB_HKV_MODES, CONFIG, sink)
    decision = controller.decide("4", 21.0, 24.0, None, False)
    assert decision.is_no_action
    assert sink.events == list(decision.diagnostics)


def test_logging_sink_uses_matching_level(caplog) -> None:
    sink = LoggingSink("office")
    with caplog.at_level(logging.INFO, logger="thermovalve.controller"):
        sink.emit(Diagnostic.warning("careful"))
        sink.emit(Diagnostic.error("broken"))
    levels = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (logging.WARNING, "[office] careful") in levels
    assert (logging.ERROR, "[office] broken") in levels


def test_temperature_beyond_float_range_is_invalid_measurement() -> None:
    decision = evaluate(OperatingMode.HEAT, 21.0, 24.0, 10**400, False, CONFIG)
    assert decision.is_no_action
    assert DiagnosticCode.INVALID_MEASUREMENT in decision.codes
