"""Thermovalve heating valve rule package."""

# Define public API
__all__ = [
    "Decision",
    "HAClient",
    "HysteresisConfig",
    "OperatingMode",
    "Temperature",
    "ThermostatController",
    "ThermostatRule",
    "ThermostatSettings",
    "ValveState",
    "evaluate",
    "normalize",
    "resolve",
]

# Import models
from .models import Decision, OperatingMode, Temperature, ValveState

# Import settings
from .settings import HysteresisConfig, ThermostatSettings

# Import decision logic
from .controller import ThermostatController, evaluate
from .measurement import normalize
from .modes import resolve

# Import HA integration
from .ha_client import HAClient
from .rule import ThermostatRule
