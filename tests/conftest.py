"""Shared fixtures: an in-memory Home Assistant stand-in."""

from typing import Any

import pytest

from thermovalve.exceptions import HAConnectionError
from thermovalve.settings import ThermostatSettings


class FakeHAClient:
    """Records service calls and applies switch on/off to its state table."""

    def __init__(self, states: dict[str, Any]) -> None:
        self.states = dict(states)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_service = False

    def get_state(self, entity_id: str) -> dict[str, Any]:
        if entity_id not in self.states:
            raise ValueError(f"Entity not found: {entity_id}")
        state = self.states[entity_id]
        if isinstance(state, dict):
            return state
        return {"entity_id": entity_id, "state": state, "attributes": {}}

    def get_raw_state(self, entity_id: str) -> str:
        return str(self.get_state(entity_id).get("state"))

    def call_service(self, domain: str, service: str, data: dict[str, Any]) -> None:
        if self.fail_service:
            raise HAConnectionError(f"Failed to call {domain}.{service}: boom")
        self.calls.append((domain, service, data))
        self.states[data["entity_id"]] = "on" if service == "turn_on" else "off"


def make_states(
    mode: Any = "4",
    heat: Any = "21.0",
    cool: Any = "24.0",
    temperature: Any = "20.0",
    valve: str = "off",
) -> dict[str, Any]:
    return {
        "sensor.mode": mode,
        "input_number.heat": heat,
        "input_number.cool": cool,
        "sensor.temperature": temperature,
        "switch.valve": valve,
    }


@pytest.fixture
def thermostat_settings() -> ThermostatSettings:
    return ThermostatSettings(
        id="living_room",
        name="Living Room",
        mode_entity="sensor.mode",
        temperature_entity="sensor.temperature",
        heat_setpoint_entity="input_number.heat",
        cool_setpoint_entity="input_number.cool",
        valve_entity="switch.valve",
    )


@pytest.fixture
def fake_ha() -> FakeHAClient:
    return FakeHAClient(make_states())
