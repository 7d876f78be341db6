"""
Thermovalve Configuration Settings

Hysteresis tunables and per-thermostat entity wiring. Loaded once at startup
from the Home Assistant add-on options (options.json) or config.yaml in
development, never mutated afterwards.
"""

import json
import logging
import math
import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .modes import ModeTable, mode_table_from_config

logger = logging.getLogger(__name__)

OPTIONS_PATH = "/data/options.json"
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "..", "..", "config.yaml")


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass(frozen=True)
class HysteresisConfig:
    """Hysteresis tunables, all non-negative Celsius deltas.

    Heat thresholds sit at heat setpoint ± heat_hysteresis / 2, the AUTO warm
    cutoff at effective cool setpoint - cool_hysteresis / 2. Setting all three
    to 0 gives plain threshold switching without anti-chatter protection.
    """

    heat_hysteresis: float = 0.5  # °C hysteresis for heating (prevents chattering)
    cool_hysteresis: float = 0.5  # °C hysteresis for "close if too warm" in AUTO
    auto_min_gap: float = 1.0  # °C minimum gap between heat and cool in AUTO

    def __post_init__(self):
        for name in ("heat_hysteresis", "cool_hysteresis", "auto_min_gap"):
            value = getattr(self, name)
            if (
                not isinstance(value, (int, float))
                or isinstance(value, bool)
                or (isinstance(value, float) and not math.isfinite(value))
                or value < 0
            ):
                raise ConfigurationError(f"{name} must be a finite non-negative number, got {value!r}")

    @property
    def heat_half_band(self) -> float:
        return self.heat_hysteresis / 2

    @property
    def cool_half_band(self) -> float:
        return self.cool_hysteresis / 2

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "HysteresisConfig":
        """Create from dictionary."""
        if not data:
            return cls()
        converted = {_camel_to_snake(k): v for k, v in data.items()}
        unknown = set(converted) - {"heat_hysteresis", "cool_hysteresis", "auto_min_gap"}
        if unknown:
            raise ConfigurationError(f"Unknown hysteresis options: {', '.join(sorted(unknown))}")
        return cls(**converted)


@dataclass
class ThermostatSettings:
    """Configuration for a single heating valve thermostat."""

    id: str
    name: str
    mode_entity: str  # Item reporting the raw operating mode
    temperature_entity: str  # Measured room temperature
    heat_setpoint_entity: str
    cool_setpoint_entity: str
    valve_entity: str  # Switch driving the heating valve (on = open)
    mode_encoding: Optional[str] = "openhab_hkv"  # Name of a shipped mode table
    mode_map: Optional[dict[Any, str]] = None  # Custom raw -> mode table, overrides mode_encoding
    hysteresis: HysteresisConfig = field(default_factory=HysteresisConfig)
    enabled: bool = True

    def __post_init__(self):
        if isinstance(self.hysteresis, dict):
            self.hysteresis = HysteresisConfig.from_dict(self.hysteresis)
        # Fail at load time rather than on the first event
        self.mode_table()

    def mode_table(self) -> ModeTable:
        """Raw mode table for this thermostat."""
        return mode_table_from_config(self.mode_encoding, self.mode_map)

    @classmethod
    def from_dict(cls, data: dict) -> "ThermostatSettings":
        """Create from dictionary."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}

        required = (
            "id",
            "name",
            "mode_entity",
            "temperature_entity",
            "heat_setpoint_entity",
            "cool_setpoint_entity",
            "valve_entity",
        )
        missing = [key for key in required if not converted.get(key)]
        if missing:
            raise ConfigurationError(
                f"Thermostat {converted.get('id', '?')} is missing: {', '.join(missing)}"
            )

        try:
            return cls(**converted)
        except TypeError as e:
            raise ConfigurationError(f"Invalid thermostat configuration: {e}")


def load_thermostats(
    options_path: str = OPTIONS_PATH,
    config_path: str = DEFAULT_CONFIG_PATH,
) -> list[ThermostatSettings]:
    """Load thermostats from Home Assistant add-on options.

    Tries options.json (production) first, then config.yaml (development).

    Returns:
        Configured thermostats; empty if no configuration was found

    Raises:
        ConfigurationError: If a thermostat entry is invalid
    """
    if os.path.exists(options_path):
        with open(options_path) as f:
            options = json.load(f)
        thermostats = [ThermostatSettings.from_dict(t) for t in options.get("thermostats", [])]
        logger.info(f"Loaded {len(thermostats)} thermostat(s) from {options_path}")
        return thermostats

    if os.path.exists(config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
        thermostat_configs = config.get("options", {}).get("thermostats", [])
        thermostats = [ThermostatSettings.from_dict(t) for t in thermostat_configs]
        logger.info(f"Loaded {len(thermostats)} thermostat(s) from {config_path}")
        return thermostats

    logger.warning("No thermostat configuration found")
    return []


def load_ha_connection() -> tuple[str, str]:
    """Return (HA_URL, HA_TOKEN), reading a .env file if present."""
    load_dotenv()
    return (
        os.environ.get("HA_URL", "http://supervisor/core"),
        os.environ.get("HA_TOKEN", ""),
    )
