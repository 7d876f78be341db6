"""
Thermovalve Custom Exceptions

Raised by configuration loading and the Home Assistant adapters.
The controller itself never raises; it reports problems as diagnostics.
"""


class ThermovalveError(Exception):
    """Base exception for Thermovalve."""

    pass


class ConfigurationError(ThermovalveError):
    """Configuration is invalid."""

    pass


class HAConnectionError(ThermovalveError):
    """Cannot connect to Home Assistant."""

    pass


class SensorError(ThermovalveError):
    """Sensor or actuator state is unavailable or invalid."""

    pass


class UnknownModeError(ThermovalveError):
    """Raw mode identifier is not present in the mode table."""

    def __init__(self, raw_mode):
        self.raw_mode = raw_mode
        super().__init__(f"Unknown mode: {raw_mode!r}")
