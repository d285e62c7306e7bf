"""AquaControl valve controller dashboard package."""

# Define public API
__all__ = [
    "Settings",
    "SettingsStore",
    "SystemStatus",
    "DeviceClient",
    "PollingScheduler",
    "decide",
]

# Import settings
from .settings import Settings, SettingsStore

# Import models
from .models import SystemStatus

# Import device client and poller
from .device_client import DeviceClient
from .polling import PollingScheduler

# Import valve logic
from .valve_logic import decide
