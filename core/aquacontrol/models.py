"""
AquaControl Data Models

Device payloads, the reconciled system status, and valve commands.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from .exceptions import ConfigurationError, MalformedResponseError
from .settings import VALVE_IDS


def _require(payload: dict, key: str, kinds: tuple) -> object:
    value = payload.get(key)
    if not isinstance(value, kinds) or (bool not in kinds and isinstance(value, bool)):
        raise MalformedResponseError(f"Field '{key}' missing or invalid: {value!r}")
    return value


@dataclass(frozen=True)
class DeviceStatus:
    """Status payload as reported by the device."""

    temperature: float  # °C
    valve1: bool
    valve2: bool
    wifi_signal: int  # dBm
    uptime: int  # seconds
    timestamp: int  # unix seconds

    @classmethod
    def from_payload(cls, payload: object) -> "DeviceStatus":
        """Decode the ``/api/status`` JSON body.

        Raises:
            MalformedResponseError: If the payload does not match the expected shape
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected a JSON object, got {type(payload).__name__}")

        return cls(
            temperature=float(_require(payload, "temperature", (int, float))),
            valve1=_require(payload, "valve1", (bool,)),
            valve2=_require(payload, "valve2", (bool,)),
            wifi_signal=int(_require(payload, "wifiSignal", (int, float))),
            uptime=int(_require(payload, "uptime", (int, float))),
            timestamp=int(_require(payload, "timestamp", (int, float))),
        )


@dataclass(frozen=True)
class SystemStatus:
    """Reconciled device status published by the polling scheduler.

    When ``is_connected`` is False the readings are the last successful ones.
    """

    temperature: float = 0.0
    is_connected: bool = False
    last_update: datetime = datetime.fromtimestamp(0, tz=timezone.utc)
    wifi_signal: int = 0
    uptime: int = 0
    valve1_reported: Optional[bool] = None
    valve2_reported: Optional[bool] = None

    @classmethod
    def from_device(cls, device: DeviceStatus) -> "SystemStatus":
        return cls(
            temperature=device.temperature,
            is_connected=True,
            last_update=datetime.fromtimestamp(device.timestamp, tz=timezone.utc),
            wifi_signal=device.wifi_signal,
            uptime=device.uptime,
            valve1_reported=device.valve1,
            valve2_reported=device.valve2,
        )

    def reported_open(self, valve_id: str) -> Optional[bool]:
        return getattr(self, f"{valve_id}_reported")

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "isConnected": self.is_connected,
            "lastUpdate": self.last_update.isoformat(),
            "wifiSignal": self.wifi_signal,
            "uptime": self.uptime,
            "valve1": self.valve1_reported,
            "valve2": self.valve2_reported,
        }


def _check_valve_id(valve_id: str) -> None:
    if valve_id not in VALVE_IDS:
        raise ConfigurationError(f"Unknown valve: {valve_id}")


@dataclass(frozen=True)
class ValveOpen:
    """Open a valve."""

    valve_id: str

    def __post_init__(self):
        _check_valve_id(self.valve_id)

    @property
    def command(self) -> str:
        return f"{self.valve_id}_open"


@dataclass(frozen=True)
class ValveClose:
    """Close a valve."""

    valve_id: str

    def __post_init__(self):
        _check_valve_id(self.valve_id)

    @property
    def command(self) -> str:
        return f"{self.valve_id}_close"


ValveCommand = Union[ValveOpen, ValveClose]


def valve_command(valve_id: str, open_valve: bool) -> ValveCommand:
    """Build the command that moves ``valve_id`` to the requested state."""
    return ValveOpen(valve_id) if open_valve else ValveClose(valve_id)


def parse_command(command: str) -> ValveCommand:
    """Parse a wire command such as ``"valve1_open"``.

    Raises:
        ConfigurationError: If the string is not a known valve command
    """
    valve_id, _, action = command.rpartition("_")
    if action == "open":
        return ValveOpen(valve_id)
    if action == "close":
        return ValveClose(valve_id)
    raise ConfigurationError(f"Unknown command: {command!r}")


@dataclass(frozen=True)
class ValveCommandIntent:
    """Desired state of a valve, derived from settings and the current status."""

    valve_id: str
    should_be_open: bool
    reported_open: Optional[bool] = None  # as last reported by the device

    @property
    def in_sync(self) -> Optional[bool]:
        if self.reported_open is None:
            return None
        return self.reported_open == self.should_be_open

    def to_dict(self) -> dict:
        return {
            "valveId": self.valve_id,
            "shouldBeOpen": self.should_be_open,
            "reportedOpen": self.reported_open,
            "inSync": self.in_sync,
        }
