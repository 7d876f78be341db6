"""
Thermovalve API Endpoints
"""

import os
import sys
from typing import Optional, Union

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "core"))

from thermovalve.controller import evaluate_raw
from thermovalve.exceptions import ConfigurationError, HAConnectionError
from thermovalve.ha_client import HAClient
from thermovalve.models import Decision, Diagnostic
from thermovalve.modes import mode_table_from_config
from thermovalve.rule import ThermostatRule
from thermovalve.settings import HysteresisConfig, ThermostatSettings, load_ha_connection, load_thermostats

router = APIRouter()

VERSION = "0.1.0"

# Initialize HA client
HA_URL, HA_TOKEN = load_ha_connection()

ha_client = HAClient(HA_URL, HA_TOKEN) if HA_TOKEN else None

# Thermostats from add-on options (options.json in production, config.yaml in development)
THERMOSTATS: list[ThermostatSettings] = []


def load_thermostats_from_config():
    """Load thermostats from Home Assistant add-on options."""
    global THERMOSTATS

    try:
        THERMOSTATS = load_thermostats()
    except ConfigurationError as e:
        logger.error(f"Invalid thermostat configuration: {e}")
        THERMOSTATS = []


# Load thermostats on module import
load_thermostats_from_config()


class LoguruSink:
    """Diagnostics sink writing to the backend's loguru logger."""

    def __init__(self, name: str):
        self.name = name

    def emit(self, diagnostic: Diagnostic) -> None:
        logger.log(diagnostic.level.name, f"[{self.name}] {diagnostic.message}")


def decision_to_dict(decision: Decision) -> dict:
    """Serialize a decision for JSON responses."""
    return {
        "action": decision.action.value if decision.action else None,
        "diagnostics": [
            {
                "level": d.level.value,
                "message": d.message,
                "code": d.code.value if d.code else None,
            }
            for d in decision.diagnostics
        ],
    }


class HysteresisRequest(BaseModel):
    """Hysteresis tunables in a decide request."""
    heat_hysteresis: float = 0.5
    cool_hysteresis: float = 0.5
    auto_min_gap: float = 1.0


class DecideRequest(BaseModel):
    """Request body for a dry decision on a snapshot."""
    mode: Union[int, str, None]
    mode_encoding: str = "openhab_hkv"
    heat_setpoint: Union[float, str, None] = None
    cool_setpoint: Union[float, str, None] = None
    temperature: Union[float, str, None] = None
    valve_open: bool = False
    hysteresis: Optional[HysteresisRequest] = None


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "Thermovalve",
        "version": VERSION,
        "ha_connected": ha_client is not None,
    }


@router.get("/api/thermostats")
async def get_thermostats():
    """Get all configured thermostats."""
    return {
        "thermostats": [
            {
                "id": t.id,
                "name": t.name,
                "mode_entity": t.mode_entity,
                "temperature_entity": t.temperature_entity,
                "heat_setpoint_entity": t.heat_setpoint_entity,
                "cool_setpoint_entity": t.cool_setpoint_entity,
                "valve_entity": t.valve_entity,
                "mode_table": t.mode_table().name,
                "hysteresis": {
                    "heat_hysteresis": t.hysteresis.heat_hysteresis,
                    "cool_hysteresis": t.hysteresis.cool_hysteresis,
                    "auto_min_gap": t.hysteresis.auto_min_gap,
                },
                "enabled": t.enabled,
            }
            for t in THERMOSTATS
        ]
    }


@router.post("/api/thermostats/{thermostat_id}/evaluate")
async def evaluate_thermostat(thermostat_id: str, dry_run: bool = Query(False)):
    """Re-evaluate a thermostat (triggered by a state change event)."""
    if not ha_client:
        raise HTTPException(status_code=503, detail="HA client not initialized")

    thermostat = next((t for t in THERMOSTATS if t.id == thermostat_id), None)
    if not thermostat:
        raise HTTPException(status_code=404, detail=f"Thermostat not found: {thermostat_id}")
    if not thermostat.enabled:
        raise HTTPException(status_code=409, detail=f"Thermostat disabled: {thermostat_id}")

    rule = ThermostatRule(ha_client, thermostat, sink=LoguruSink(thermostat.id))
    try:
        outcome = rule.run(event="api", dry_run=dry_run)
    except HAConnectionError as e:
        logger.error(f"Failed to command valve for {thermostat_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "thermostat_id": outcome.thermostat_id,
        "commanded": outcome.commanded,
        "dry_run": dry_run,
        **decision_to_dict(outcome.decision),
    }


@router.post("/api/decide")
async def decide(request: DecideRequest):
    """Decide on a posted snapshot without touching any actuator."""
    try:
        mode_table = mode_table_from_config(request.mode_encoding)
        config = (
            HysteresisConfig(**request.hysteresis.model_dump())
            if request.hysteresis
            else HysteresisConfig()
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    decision = evaluate_raw(
        request.mode,
        mode_table,
        request.heat_setpoint,
        request.cool_setpoint,
        request.temperature,
        request.valve_open,
        config,
    )
    return decision_to_dict(decision)
