"""
Thermovalve Data Models

Value types built fresh for every decision cycle. None of them are shared
between cycles.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OperatingMode(Enum):
    """Canonical thermostat operating mode."""

    OFF = "off"
    HEAT = "heat"
    COOL = "cool"
    AUTO = "auto"


class ValveState(Enum):
    """Observed state of the heating valve, also used as the command target."""

    OPEN = "open"
    CLOSED = "closed"


class SetpointKind(Enum):
    HEAT = "heat"
    COOL = "cool"


class DiagnosticLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(Enum):
    """Reasons a decision cycle ended without a command."""

    INVALID_MEASUREMENT = "invalid_measurement"
    MISSING_SETPOINT = "missing_setpoint"
    UNKNOWN_MODE = "unknown_mode"
    UNKNOWN_OPERATING_MODE = "unknown_operating_mode"


@dataclass(frozen=True)
class Temperature:
    """A temperature in Celsius, or the Invalid marker when celsius is None."""

    celsius: Optional[float] = None

    def __post_init__(self):
        # NaN and infinities never leave the boundary
        if self.celsius is not None:
            try:
                value = float(self.celsius)
            except OverflowError:
                value = math.nan
            object.__setattr__(self, "celsius", value if math.isfinite(value) else None)

    @classmethod
    def invalid(cls) -> "Temperature":
        return cls(None)

    @property
    def is_valid(self) -> bool:
        return self.celsius is not None

    def __str__(self) -> str:
        return f"{self.celsius}°C" if self.is_valid else "invalid"


INVALID = Temperature.invalid()


@dataclass(frozen=True)
class Setpoint:
    """A temperature target tagged with the mode it belongs to."""

    kind: SetpointKind
    temperature: Temperature = INVALID

    @classmethod
    def heat(cls, temperature: Temperature) -> "Setpoint":
        return cls(SetpointKind.HEAT, temperature)

    @classmethod
    def cool(cls, temperature: Temperature) -> "Setpoint":
        return cls(SetpointKind.COOL, temperature)

    @property
    def is_valid(self) -> bool:
        return self.temperature.is_valid

    @property
    def celsius(self) -> Optional[float]:
        return self.temperature.celsius

    def __str__(self) -> str:
        return str(self.temperature)


# Unit spellings seen on Home Assistant sensors and in hand-written configs
_CELSIUS_UNITS = {"°c", "c", "degc", "celsius", "℃"}
_FAHRENHEIT_UNITS = {"°f", "f", "degf", "fahrenheit", "℉"}
_KELVIN_UNITS = {"k", "kelvin"}


@dataclass(frozen=True)
class Measurement:
    """A raw reading with its unit, convertible to Celsius."""

    value: float
    unit: str = "°C"

    def to_celsius(self) -> float:
        """Convert the reading to Celsius.

        Raises:
            ValueError: If the value is not numeric or the unit is unknown
        """
        try:
            value = float(self.value)
        except OverflowError:
            raise ValueError(f"Temperature value out of range: {self.value}")
        unit = (self.unit or "°C").strip().lower()

        if unit in _CELSIUS_UNITS:
            return value
        if unit in _FAHRENHEIT_UNITS:
            return (value - 32.0) * 5.0 / 9.0
        if unit in _KELVIN_UNITS:
            return value - 273.15
        raise ValueError(f"Unsupported temperature unit: {self.unit}")


@dataclass(frozen=True)
class Diagnostic:
    """A leveled observability event produced while deciding."""

    level: DiagnosticLevel
    message: str
    code: Optional[DiagnosticCode] = None

    @classmethod
    def info(cls, message: str) -> "Diagnostic":
        return cls(DiagnosticLevel.INFO, message)

    @classmethod
    def warning(cls, message: str, code: Optional[DiagnosticCode] = None) -> "Diagnostic":
        return cls(DiagnosticLevel.WARNING, message, code)

    @classmethod
    def error(cls, message: str, code: Optional[DiagnosticCode] = None) -> "Diagnostic":
        return cls(DiagnosticLevel.ERROR, message, code)


@dataclass(frozen=True)
class Decision:
    """Controller output: leave the valve alone (action is None) or set it."""

    action: Optional[ValveState] = None
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @classmethod
    def no_action(cls, *diagnostics: Diagnostic) -> "Decision":
        return cls(None, tuple(diagnostics))

    @classmethod
    def set_valve(cls, target: ValveState, *diagnostics: Diagnostic) -> "Decision":
        return cls(target, tuple(diagnostics))

    @property
    def is_no_action(self) -> bool:
        return self.action is None

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level is DiagnosticLevel.WARNING]

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level is DiagnosticLevel.ERROR]

    @property
    def codes(self) -> set[DiagnosticCode]:
        return {d.code for d in self.diagnostics if d.code is not None}

    def with_diagnostics(self, *diagnostics: Diagnostic) -> "Decision":
        """Return a copy with extra diagnostics prepended."""
        return Decision(self.action, tuple(diagnostics) + self.diagnostics)
