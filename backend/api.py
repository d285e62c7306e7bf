"""
AquaControl API Endpoints
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from core.aquacontrol.config import AppConfig
from core.aquacontrol.device_client import DeviceClient
from core.aquacontrol.display import format_uptime, remediation_hints, signal_quality
from core.aquacontrol.exceptions import ConfigurationError
from core.aquacontrol.models import valve_command
from core.aquacontrol.polling import PollingScheduler
from core.aquacontrol.settings import VALVE_IDS, SettingsStore
from core.aquacontrol.valve_logic import (
    from_display_unit,
    to_display_unit,
    valve_intents,
    valve_state_label,
)

VERSION = "0.1.0"

# Delay before re-reading the status after a command
COMMAND_REFRESH_DELAY_SECONDS = 0.5

router = APIRouter()


@dataclass
class Dashboard:
    """Services shared by all endpoints (created in the app lifespan)."""

    config: AppConfig
    store: SettingsStore
    client: DeviceClient
    scheduler: PollingScheduler


def get_dashboard(request: Request) -> Dashboard:
    dashboard = getattr(request.app.state, "dashboard", None)
    if dashboard is None:
        raise HTTPException(status_code=503, detail="Dashboard not initialized")
    return dashboard


def _check_valve_id(valve_id: str) -> None:
    if valve_id not in VALVE_IDS:
        raise HTTPException(status_code=404, detail=f"Valve not found: {valve_id}")


class SetTargetRequest(BaseModel):
    """Request body for setting a valve target temperature."""
    temperature: float
    unit: Optional[Literal["C", "F"]] = None  # defaults to the configured display unit


class ValveCommandRequest(BaseModel):
    """Request body for a manual valve command."""
    open: bool


def build_status(dashboard: Dashboard) -> dict:
    """Status snapshot with display values and auto-mode valve intents."""
    settings = dashboard.store.settings
    scheduler = dashboard.scheduler
    status = scheduler.status
    unit = settings.general.temp_unit

    valves = []
    for intent in valve_intents(settings, status):
        valve = settings.valve(intent.valve_id)
        valves.append({
            **intent.to_dict(),
            "name": valve.name,
            "type": valve.type,
            "isEnabled": valve.is_enabled,
            "targetTemp": to_display_unit(valve.target_temp, unit),
            "difference": round(to_display_unit(status.temperature, unit) - to_display_unit(valve.target_temp, unit), 1),
            "label": valve_state_label(valve, intent.should_be_open, status.is_connected),
        })

    snapshot = scheduler.snapshot()
    snapshot.update({
        "temperature": to_display_unit(status.temperature, unit),
        "tempUnit": unit,
        "autoMode": settings.general.auto_mode,
        "uptimeFormatted": format_uptime(status.uptime),
        "signalQuality": signal_quality(status.wifi_signal) if status.is_connected else None,
        "remediation": remediation_hints(dashboard.config.locale) if scheduler.connection_error else [],
        "valves": valves,
    })
    return snapshot


@router.get("/api/health")
async def health_check(dashboard: Dashboard = Depends(get_dashboard)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "AquaControl",
        "version": VERSION,
        "device_address": dashboard.scheduler.address,
        "device_connected": dashboard.scheduler.status.is_connected,
    }


@router.get("/api/status")
async def get_status(dashboard: Dashboard = Depends(get_dashboard)):
    """Current device status as seen by the poller."""
    return build_status(dashboard)


@router.post("/api/refresh")
async def refresh_status(dashboard: Dashboard = Depends(get_dashboard)):
    """Poll the device immediately (manual retry)."""
    await dashboard.scheduler.refetch()
    return build_status(dashboard)


@router.get("/api/settings")
async def get_settings(dashboard: Dashboard = Depends(get_dashboard)):
    """Get the current settings (temperatures in °C)."""
    return dashboard.store.settings.to_dict()


@router.patch("/api/settings")
async def update_settings(patch: dict[str, Any], dashboard: Dashboard = Depends(get_dashboard)):
    """Update one or more settings sections.

    Only the fields present in each section are changed. A new device
    address or update interval restarts polling.
    """
    try:
        settings = dashboard.store.update(patch)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    general = settings.general
    await dashboard.scheduler.reconfigure(general.device_address, general.update_interval)
    logger.info("Settings updated")
    return settings.to_dict()


@router.put("/api/valves/{valve_id}/target")
async def set_valve_target(
    valve_id: str,
    request: SetTargetRequest,
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Set a valve's target temperature."""
    _check_valve_id(valve_id)

    unit = request.unit or dashboard.store.settings.general.temp_unit
    target = from_display_unit(request.temperature, unit)
    settings = dashboard.store.update_valve_target(valve_id, target)
    logger.info(f"{valve_id} target set to {target:.1f}°C")
    return settings.to_dict()


@router.post("/api/valves/{valve_id}/command")
async def send_valve_command(
    valve_id: str,
    request: ValveCommandRequest,
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Open or close a valve manually, then refresh the status shortly after."""
    _check_valve_id(valve_id)

    valve = dashboard.store.settings.valve(valve_id)
    if not valve.is_enabled:
        raise HTTPException(status_code=400, detail=f"Valve is disabled: {valve_id}")
    if not dashboard.scheduler.status.is_connected:
        raise HTTPException(status_code=409, detail="Device is not connected")

    command = valve_command(valve_id, request.open)
    success = await dashboard.client.send_command(dashboard.scheduler.address, command)
    if success:
        dashboard.scheduler.refetch_later(COMMAND_REFRESH_DELAY_SECONDS)
    else:
        logger.warning(f"Device rejected or did not receive {command.command}")

    body = {
        "success": success,
        "command": command.command,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if success else 502, content=body)
