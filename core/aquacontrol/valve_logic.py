"""
Valve decision logic for automatic mode.

A valve should be open once the measured temperature reaches its target.
All comparisons are done in Celsius; conversion to Fahrenheit happens only
for display.
"""

from .models import SystemStatus, ValveCommand, ValveCommandIntent, valve_command
from .settings import VALVE_IDS, Settings, ValveSettings


def celsius_to_fahrenheit(temp: float) -> float:
    return temp * 9 / 5 + 32


def fahrenheit_to_celsius(temp: float) -> float:
    return (temp - 32) * 5 / 9


def to_display_unit(temp: float, unit: str) -> float:
    """Convert a Celsius value to the configured display unit."""
    return celsius_to_fahrenheit(temp) if unit == "F" else temp


def from_display_unit(temp: float, unit: str) -> float:
    """Convert a value entered in the display unit back to Celsius."""
    return fahrenheit_to_celsius(temp) if unit == "F" else temp


def decide(valve: ValveSettings, current_temp: float) -> bool:
    """Return True if the valve should be open (inclusive threshold).

    Inlet and outlet valves use the same comparison; the type only changes
    how the state is labeled.
    """
    return current_temp >= valve.target_temp


def valve_intents(settings: Settings, status: SystemStatus) -> list[ValveCommandIntent]:
    """Desired state of each valve for the current temperature."""
    return [
        ValveCommandIntent(
            valve_id=valve_id,
            should_be_open=decide(settings.valve(valve_id), status.temperature),
            reported_open=status.reported_open(valve_id),
        )
        for valve_id in VALVE_IDS
    ]


def intent_command(intent: ValveCommandIntent) -> ValveCommand:
    return valve_command(intent.valve_id, intent.should_be_open)


def valve_state_label(valve: ValveSettings, should_be_open: bool, is_connected: bool) -> str:
    if not is_connected:
        return "unavailable"
    if not should_be_open:
        return "closed"
    return f"open ({valve.type})"
