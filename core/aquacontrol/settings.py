"""
AquaControl Settings

User settings for the two valves and the general dashboard options.
Settings are persisted as a single JSON document (camelCase keys) and are
always merged over defaults, so every field is present after a load or update.
Temperatures are stored in Celsius.
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Literal

from .exceptions import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)

VALVE_IDS = ("valve1", "valve2")
SETTINGS_FILENAME = "aquacontrol-settings.json"
DEFAULT_DEVICE_ADDRESS = "192.168.4.1"

# Keys written by older dashboard versions
_KEY_ALIASES = {"esp32_ip": "device_address"}


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def _snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")
    return value


def _check_address(name: str, value: Any) -> str:
    return _check_str(name, value).strip()


def _check_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a boolean, got {value!r}")
    return value


def _check_temperature(name: str, value: Any) -> float:
    if not _is_number(value):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    return float(value)


def _check_interval(name: str, value: Any) -> int:
    if not _is_number(value) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"{name} must be a whole number of seconds, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1 second, got {value!r}")
    return int(value)


def _check_choice(*choices: str) -> Callable[[str, Any], str]:
    def check(name: str, value: Any) -> str:
        if value not in choices:
            raise ConfigurationError(f"{name} must be one of {choices}, got {value!r}")
        return value

    return check


@dataclass
class ValveSettings:
    """Configuration for one valve."""

    name: str
    target_temp: float  # °C, valve opens at or above this temperature
    is_enabled: bool = True
    type: Literal["inlet", "outlet"] = "inlet"

    _validators = {
        "name": _check_str,
        "target_temp": _check_temperature,
        "is_enabled": _check_bool,
        "type": _check_choice("inlet", "outlet"),
    }


@dataclass
class GeneralSettings:
    """Dashboard-wide options."""

    temp_unit: Literal["C", "F"] = "C"
    update_interval: int = 2  # seconds between status polls
    device_address: str = DEFAULT_DEVICE_ADDRESS
    auto_mode: bool = True

    _validators = {
        "temp_unit": _check_choice("C", "F"),
        "update_interval": _check_interval,
        "device_address": _check_address,
        "auto_mode": _check_bool,
    }


@dataclass
class Settings:
    """Complete settings record."""

    valve1: ValveSettings = field(
        default_factory=lambda: ValveSettings(name="inlet valve", target_temp=25.0, type="inlet")
    )
    valve2: ValveSettings = field(
        default_factory=lambda: ValveSettings(name="outlet valve", target_temp=30.0, type="outlet")
    )
    general: GeneralSettings = field(default_factory=GeneralSettings)

    def valve(self, valve_id: str) -> ValveSettings:
        """Return the settings of ``valve1`` or ``valve2``."""
        if valve_id not in VALVE_IDS:
            raise ConfigurationError(f"Unknown valve: {valve_id}")
        return getattr(self, valve_id)

    def to_dict(self) -> dict:
        """Serialize to the persisted camelCase shape."""
        return {
            section: {
                _snake_to_camel(key): getattr(getattr(self, section), key)
                for key in type(getattr(self, section))._validators
            }
            for section in _SECTIONS
        }

    @classmethod
    def from_dict(cls, data: dict, defaults: "Settings | None" = None) -> "Settings":
        """Create from a (possibly partial) dictionary, filling gaps from defaults."""
        return merge(defaults or cls(), data)


_SECTIONS = {
    "valve1": ValveSettings,
    "valve2": ValveSettings,
    "general": GeneralSettings,
}


def default_settings(device_address: str = DEFAULT_DEVICE_ADDRESS) -> Settings:
    """Build the default settings, optionally for a different device address."""
    return Settings(general=GeneralSettings(device_address=device_address))


def _coerce_section(section: str, section_cls: type, data: Any) -> dict:
    """Validate one section patch and return its fields in snake_case."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be an object, got {type(data).__name__}")

    fields = {}
    for raw_key, value in data.items():
        key = _camel_to_snake(raw_key)
        key = _KEY_ALIASES.get(key, key)
        validator = section_cls._validators.get(key)
        if validator is None:
            logger.debug(f"Ignoring unknown settings key {section}.{raw_key}")
            continue
        fields[key] = validator(f"{section}.{_snake_to_camel(key)}", value)
    return fields


def merge(base: Settings, patch: dict) -> Settings:
    """Shallow-merge each section present in ``patch`` over ``base``.

    Sections missing from the patch are copied unchanged, so the result always
    has every field populated.

    Raises:
        ConfigurationError: If the patch has the wrong shape or invalid values
    """
    if not isinstance(patch, dict):
        raise ConfigurationError(f"Settings must be an object, got {type(patch).__name__}")

    sections = {}
    for section, section_cls in _SECTIONS.items():
        current = getattr(base, section)
        if patch.get(section) is None:
            sections[section] = replace(current)
        else:
            sections[section] = replace(current, **_coerce_section(section, section_cls, patch[section]))
    return Settings(**sections)


class SettingsStore:
    """Loads, merges and persists the settings record.

    The in-memory ``settings`` are authoritative for the running session;
    persistence is best-effort.
    """

    def __init__(self, path: str | Path, defaults: Settings | None = None):
        """Initialize the store and load persisted settings.

        Args:
            path: JSON file holding the settings record
            defaults: Settings used for missing or unreadable values
        """
        self.path = Path(path)
        self.defaults = defaults or default_settings()
        self.settings = self.load()

    def load(self) -> Settings:
        """Read persisted settings merged over defaults. Never raises."""
        if not self.path.exists():
            logger.debug(f"No saved settings at {self.path}, using defaults")
            return merge(self.defaults, {})

        try:
            data = self._read()
            settings = merge(self.defaults, data)
        except (PersistenceError, ConfigurationError) as e:
            logger.warning(f"Failed to load settings from {self.path}, using defaults: {e}")
            return merge(self.defaults, {})

        logger.info(f"Loaded settings from {self.path}")
        return settings

    def save(self, settings: Settings) -> None:
        """Persist settings. Failures are logged, not raised."""
        try:
            self._write(settings.to_dict())
        except PersistenceError as e:
            logger.error(f"Failed to save settings: {e}")

    def update(self, patch: dict) -> Settings:
        """Merge a partial update over the current settings and persist it.

        Raises:
            ConfigurationError: If the patch is invalid (nothing is changed)
        """
        updated = merge(self.settings, patch)
        self.settings = updated
        self.save(updated)
        return updated

    def update_valve_target(self, valve_id: str, temp: float) -> Settings:
        """Set one valve's target temperature (°C)."""
        if valve_id not in VALVE_IDS:
            raise ConfigurationError(f"Unknown valve: {valve_id}")
        return self.update({valve_id: {"target_temp": temp}})

    def _read(self) -> Any:
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

    def _write(self, data: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Saved settings to {self.path}")
