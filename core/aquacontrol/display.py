"""
Display helpers

Formatting of device readings and localized connection error messages
for the dashboard UI.
"""

from .exceptions import DeviceConnectionError, DeviceHTTPError

DEFAULT_LOCALE = "en"

CONNECTION_ERROR_MESSAGES = {
    "en": {
        "address_missing": "Device IP address is not configured.",
        "timeout": "Connection to the device timed out.",
        "unreachable": "Device is unreachable. Check the IP address and network connection.",
        "network_error": "Network error. Check that you are on the same network as the device.",
        "http_error": "Device returned an error ({detail}).",
        "malformed_response": "Device sent an invalid status response.",
        "unknown": "Unknown error.",
    },
    "sr": {
        "address_missing": "IP adresa ESP32 nije podešena.",
        "timeout": "Vreme za konekciju je isteklo.",
        "unreachable": "ESP32 uređaj nije dostupan. Proverite IP adresu i mrežnu konekciju.",
        "network_error": "Greška mreže. Proverite da li ste povezani na istu mrežu kao ESP32.",
        "http_error": "ESP32 je vratio grešku ({detail}).",
        "malformed_response": "ESP32 je poslao neispravan odgovor.",
        "unknown": "Nepoznata greška.",
    },
}

REMEDIATION_HINTS = {
    "en": [
        "Check that the device is powered on",
        "Confirm the IP address in the settings",
        "Connect to the same Wi-Fi network as the device",
        "If the device runs in AP mode, connect directly to its network",
    ],
    "sr": [
        "Proverite da li je ESP32 uključen",
        "Potvrdite IP adresu u podešavanjima",
        "Povežite se na istu Wi-Fi mrežu kao ESP32",
        "Ako ESP32 radi u AP režimu, povežite se direktno na njegovu mrežu",
    ],
}


def _messages(locale: str) -> dict:
    return CONNECTION_ERROR_MESSAGES.get(locale, CONNECTION_ERROR_MESSAGES[DEFAULT_LOCALE])


def connection_error_message(error: Exception, locale: str = DEFAULT_LOCALE) -> str:
    """User-facing message for a failed device call."""
    code = error.code if isinstance(error, DeviceConnectionError) else "unknown"
    template = _messages(locale).get(code, _messages(locale)["unknown"])
    detail = str(error) if isinstance(error, DeviceHTTPError) else ""
    return template.format(detail=detail)


def remediation_hints(locale: str = DEFAULT_LOCALE) -> list[str]:
    return list(REMEDIATION_HINTS.get(locale, REMEDIATION_HINTS[DEFAULT_LOCALE]))


def format_uptime(seconds: int) -> str:
    """Format device uptime as hours and minutes (3661 -> "1h 1m")."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    return f"{hours}h {remainder // 60}m"


def signal_quality(dbm: int) -> str:
    """Classify Wi-Fi signal strength."""
    if dbm > -50:
        return "excellent"
    if dbm > -60:
        return "good"
    if dbm > -70:
        return "fair"
    return "weak"
