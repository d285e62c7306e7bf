"""Application configuration.

Loads the backend options from Home Assistant add-on ``options.json``,
then ``config.yaml`` (development), then environment variables / ``.env``.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv

from .device_client import REQUEST_TIMEOUT_SECONDS
from .display import DEFAULT_LOCALE
from .settings import DEFAULT_DEVICE_ADDRESS, SETTINGS_FILENAME

_LOGGER = logging.getLogger(__name__)

OPTIONS_PATH = "/data/options.json"
CONFIG_YAML_PATH = Path(__file__).resolve().parents[2] / "config.yaml"

# option key -> environment variable
_ENV_VARS = {
    "data_dir": "AQUACONTROL_DATA_DIR",
    "device_address": "AQUACONTROL_DEVICE_ADDRESS",
    "locale": "AQUACONTROL_LOCALE",
    "request_timeout": "AQUACONTROL_REQUEST_TIMEOUT",
}


@dataclass
class AppConfig:
    """Backend options (not user settings)."""

    data_dir: str = "data"
    device_address: str = DEFAULT_DEVICE_ADDRESS  # default when no settings are saved
    locale: str = DEFAULT_LOCALE
    request_timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def settings_path(self) -> Path:
        return Path(self.data_dir) / SETTINGS_FILENAME


def _read_options(options_path: str, config_yaml_path: Path) -> dict:
    """Read the ``options`` mapping from options.json or config.yaml."""
    try:
        if os.path.exists(options_path):
            with open(options_path) as f:
                options = json.load(f)
            _LOGGER.debug("Loaded options from options.json")
            return options
    except Exception as e:
        _LOGGER.warning("Failed to load options.json: %s", str(e))

    try:
        if config_yaml_path.exists():
            with open(config_yaml_path) as f:
                config = yaml.safe_load(f) or {}
            _LOGGER.debug("Loaded options from config.yaml")
            return config.get("options", {}) or {}
    except Exception as e:
        _LOGGER.warning("Failed to load config.yaml: %s", str(e))

    return {}


def load_app_config(
    options_path: str = OPTIONS_PATH,
    config_yaml_path: Path = CONFIG_YAML_PATH,
) -> AppConfig:
    """Resolve backend options. Environment variables override file options."""
    options = _read_options(options_path, config_yaml_path)

    load_dotenv(find_dotenv(usecwd=True))
    for key, env_var in _ENV_VARS.items():
        if os.getenv(env_var):
            options[key] = os.getenv(env_var)

    config = AppConfig()
    if options.get("data_dir"):
        config.data_dir = str(options["data_dir"])
    if options.get("device_address"):
        config.device_address = str(options["device_address"]).strip()
    if options.get("locale"):
        config.locale = str(options["locale"])
    if options.get("request_timeout"):
        try:
            config.request_timeout = float(options["request_timeout"])
        except (TypeError, ValueError):
            _LOGGER.warning("Invalid request_timeout %r, using %s", options["request_timeout"], config.request_timeout)

    return config
