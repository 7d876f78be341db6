"""
Simple Home Assistant API Client for Thermovalve

Minimal client for reading thermostat items and switching the heating valve.
"""

import logging
from typing import Any

import requests

from .exceptions import HAConnectionError, SensorError
from .models import ValveState

logger = logging.getLogger(__name__)


class HAClient:
    """Simple Home Assistant REST API client."""

    def __init__(self, base_url: str, token: str, timeout: float = 5):
        """Initialize HA client.

        Args:
            base_url: Home Assistant URL (e.g., "http://supervisor/core")
            token: Long-lived access token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        # Create a session for connection pooling
        self.session = requests.Session()
        self.session.headers.update(self.headers)
        self.timeout = timeout

    def get_state(self, entity_id: str) -> dict[str, Any]:
        """Get current state of an entity.

        Args:
            entity_id: Entity ID (e.g., "sensor.living_room_temperature")

        Returns:
            State dictionary with 'state', 'attributes', etc.

        Raises:
            ValueError: If entity not found
            HAConnectionError: If API request fails
        """
        url = f"{self.base_url}/api/states/{entity_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise ValueError(f"Entity not found: {entity_id}")
            raise HAConnectionError(f"Failed to get state for {entity_id}: {e}")
        except requests.exceptions.RequestException as e:
            raise HAConnectionError(f"HA API request failed: {e}")

    def get_raw_state(self, entity_id: str) -> str:
        """Get the bare state string of an entity (e.g. "4", "on", "21.5")."""
        return str(self.get_state(entity_id).get("state"))

    def call_service(self, domain: str, service: str, data: dict[str, Any]) -> None:
        """Call a Home Assistant service.

        Args:
            domain: Service domain (e.g., "switch")
            service: Service name (e.g., "turn_on")
            data: Service data, usually containing entity_id

        Raises:
            HAConnectionError: If service call fails
        """
        url = f"{self.base_url}/api/services/{domain}/{service}"
        try:
            logger.debug(f"Calling {url} with data: {data}")
            response = self.session.post(url, json=data, timeout=self.timeout)
            response.raise_for_status()
            logger.info(f"Called {domain}.{service} for {data.get('entity_id')} - Response: {response.status_code}")
        except requests.exceptions.RequestException as e:
            raise HAConnectionError(f"Failed to call {domain}.{service}: {e}")


class ValveAdapter:
    """Heating valve exposed as an on/off entity (on = open)."""

    def __init__(self, client: HAClient, entity_id: str):
        self.client = client
        self.entity_id = entity_id
        # switch.hkv_living_room -> switch; input_boolean etc. work the same way
        self.domain = entity_id.split(".", 1)[0] if "." in entity_id else "switch"

    def current_state(self) -> ValveState:
        """Read the valve position reported by Home Assistant.

        Raises:
            SensorError: If the entity reports something other than on/off
        """
        raw = self.client.get_raw_state(self.entity_id).strip().lower()
        if raw == "on":
            return ValveState.OPEN
        if raw == "off":
            return ValveState.CLOSED
        raise SensorError(f"Valve {self.entity_id} reports unusable state '{raw}'")

    def command(self, target: ValveState) -> bool:
        """Drive the valve to target; no-op when it is already there.

        Returns:
            True if a service call was made
        """
        if self.current_state() is target:
            logger.debug(f"Valve {self.entity_id} already {target.value}")
            return False

        service = "turn_on" if target is ValveState.OPEN else "turn_off"
        self.client.call_service(self.domain, service, {"entity_id": self.entity_id})
        logger.info(f"Valve {self.entity_id} -> {target.value}")
        return True
