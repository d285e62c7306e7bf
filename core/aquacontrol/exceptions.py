"""
AquaControl Custom Exceptions

Simple exception hierarchy for error handling.
Device errors carry a stable ``code`` used to look up user-facing messages.
"""


class AquaControlError(Exception):
    """Base exception for AquaControl."""

    pass


class ConfigurationError(AquaControlError):
    """Settings or configuration values are invalid."""

    pass


class PersistenceError(AquaControlError):
    """Settings could not be read from or written to storage."""

    pass


class DeviceConnectionError(AquaControlError):
    """Cannot talk to the device."""

    code = "unknown"


class AddressMissingError(DeviceConnectionError):
    """No device address is configured."""

    code = "address_missing"


class DeviceTimeoutError(DeviceConnectionError):
    """The device did not answer before the deadline."""

    code = "timeout"


class DeviceUnreachableError(DeviceConnectionError):
    """Network-level failure (host down, DNS, connection refused)."""

    code = "unreachable"


class DeviceNetworkError(DeviceUnreachableError):
    """No route to the device (this host is not on the device's network)."""

    code = "network_error"


class DeviceHTTPError(DeviceConnectionError):
    """The device answered with a non-2xx status."""

    code = "http_error"

    def __init__(self, status: int, status_text: str = ""):
        self.status = status
        self.status_text = status_text
        super().__init__(f"HTTP {status}: {status_text}" if status_text else f"HTTP {status}")


class MalformedResponseError(DeviceConnectionError):
    """The status payload is not the expected JSON shape."""

    code = "malformed_response"
