"""Tests for display.py."""

from __future__ import annotations

import pytest

from core.aquacontrol.display import (
    connection_error_message,
    format_uptime,
    remediation_hints,
    signal_quality,
)
from core.aquacontrol.exceptions import (
    AddressMissingError,
    DeviceHTTPError,
    DeviceNetworkError,
    DeviceTimeoutError,
    DeviceUnreachableError,
    MalformedResponseError,
)


class TestFormatUptime:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0h 0m"), (59, "0h 0m"), (60, "0h 1m"), (3661, "1h 1m"), (90000, "25h 0m"), (-5, "0h 0m")],
    )
    def test_format(self, seconds: int, expected: str) -> None:
        assert format_uptime(seconds) == expected


class TestSignalQuality:
    @pytest.mark.parametrize(
        ("dbm", "expected"),
        [(-40, "excellent"), (-50, "good"), (-55, "good"), (-60, "fair"), (-69, "fair"), (-70, "weak"), (-90, "weak")],
    )
    def test_quality(self, dbm: int, expected: str) -> None:
        assert signal_quality(dbm) == expected


class TestConnectionErrorMessage:
    def test_unreachable(self) -> None:
        message = connection_error_message(DeviceUnreachableError("refused"))

        assert message == "Device is unreachable. Check the IP address and network connection."

    def test_each_error_has_its_own_message(self) -> None:
        errors = [
            AddressMissingError(),
            DeviceTimeoutError(),
            DeviceUnreachableError(),
            DeviceNetworkError(),
            DeviceHTTPError(500, "Internal Server Error"),
            MalformedResponseError(),
        ]

        messages = {connection_error_message(e) for e in errors}

        assert len(messages) == len(errors)

    def test_network_error(self) -> None:
        assert connection_error_message(DeviceNetworkError()) == (
            "Network error. Check that you are on the same network as the device."
        )
        assert connection_error_message(DeviceNetworkError(), "sr").startswith("Greška mreže")

    def test_http_error_includes_status(self) -> None:
        message = connection_error_message(DeviceHTTPError(404, "Not Found"))

        assert "HTTP 404: Not Found" in message

    def test_serbian_locale(self) -> None:
        assert connection_error_message(DeviceTimeoutError(), "sr") == "Vreme za konekciju je isteklo."

    def test_unknown_locale_falls_back_to_english(self) -> None:
        assert connection_error_message(DeviceTimeoutError(), "de") == connection_error_message(DeviceTimeoutError())

    def test_non_device_error(self) -> None:
        assert connection_error_message(RuntimeError("boom")) == "Unknown error."

    def test_remediation_hints(self) -> None:
        assert len(remediation_hints()) == 4
        assert remediation_hints("sr")[0].startswith("Proverite")
