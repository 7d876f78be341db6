"""
Thermostat Rule

One decision cycle against Home Assistant: read the thermostat items, let the
controller decide, then drive the valve. All I/O happens before and after the
controller call; the decision itself is pure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .controller import DiagnosticsSink, LoggingSink, ThermostatController
from .exceptions import HAConnectionError, SensorError
from .ha_client import HAClient, ValveAdapter
from .models import Decision, Diagnostic, ValveState
from .settings import ThermostatSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleOutcome:
    """Result of one rule run."""

    thermostat_id: str
    decision: Decision
    commanded: bool = False


class ThermostatRule:
    """Binds a thermostat's configuration to Home Assistant."""

    def __init__(
        self,
        ha_client: HAClient,
        settings: ThermostatSettings,
        sink: Optional[DiagnosticsSink] = None,
    ):
        self.ha_client = ha_client
        self.settings = settings
        self.sink = sink or LoggingSink(settings.id)
        self.valve = ValveAdapter(ha_client, settings.valve_entity)
        self.controller = ThermostatController(
            settings.mode_table(),
            settings.hysteresis,
            self.sink,
        )

    def _read(self, entity_id: str) -> Optional[dict[str, Any]]:
        """Read an entity state; a failed read counts as absent input."""
        try:
            return self.ha_client.get_state(entity_id)
        except (ValueError, HAConnectionError) as e:
            logger.warning(f"Failed to read {entity_id}: {e}")
            return None

    def run(self, event: Any = None, dry_run: bool = False) -> RuleOutcome:
        """Run one decision cycle.

        Args:
            event: Triggering event; only causes the re-evaluation
            dry_run: Decide but do not command the valve

        Returns:
            RuleOutcome with the decision and whether a command was sent

        Raises:
            HAConnectionError: If sending the valve command fails
        """
        logger.debug(f"Thermostat {self.settings.id} triggered by {event!r}")

        try:
            valve_state = self.valve.current_state()
        except (ValueError, HAConnectionError, SensorError) as e:
            diagnostic = Diagnostic.error(f"Cannot read valve {self.settings.valve_entity}: {e}")
            self.sink.emit(diagnostic)
            return RuleOutcome(self.settings.id, Decision.no_action(diagnostic))

        mode_state = self._read(self.settings.mode_entity)
        decision = self.controller.decide(
            mode_state.get("state") if mode_state else None,
            self._read(self.settings.heat_setpoint_entity),
            self._read(self.settings.cool_setpoint_entity),
            self._read(self.settings.temperature_entity),
            valve_state is ValveState.OPEN,
        )

        if decision.is_no_action or dry_run:
            return RuleOutcome(self.settings.id, decision)

        commanded = self.valve.command(decision.action)
        return RuleOutcome(self.settings.id, decision, commanded)
