"""Shared fixtures for AquaControl tests.

Provides a fake device client so the poller and API can be exercised
without network access.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from core.aquacontrol.exceptions import DeviceUnreachableError
from core.aquacontrol.models import DeviceStatus

SAMPLE_PAYLOAD = {
    "temperature": 27,
    "valve1": True,
    "valve2": False,
    "wifiSignal": -55,
    "uptime": 3661,
    "timestamp": 1000,
}


class FakeDeviceClient:
    """Stand-in for DeviceClient.

    ``results`` is consumed one item per poll; an exception instance is
    raised, anything else is returned. The last item repeats.
    """

    def __init__(self, *results: Any):
        self.results = list(results) or [DeviceStatus.from_payload(SAMPLE_PAYLOAD)]
        self.polls: list[str] = []
        self.commands: list[tuple[str, str]] = []
        self.command_result = True
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def fetch_status(self, address: str) -> DeviceStatus:
        self.polls.append(address)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    async def send_command(self, address: str, command: Any, value: Any = None) -> bool:
        self.commands.append((address, getattr(command, "command", command)))
        return self.command_result

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def device_status() -> DeviceStatus:
    return DeviceStatus.from_payload(SAMPLE_PAYLOAD)


@pytest.fixture()
def fake_client(device_status: DeviceStatus) -> FakeDeviceClient:
    return FakeDeviceClient(device_status)


@pytest.fixture()
def unreachable_client() -> FakeDeviceClient:
    return FakeDeviceClient(DeviceUnreachableError("connection refused"))


@pytest.fixture()
def settings_path(tmp_path):
    return tmp_path / "aquacontrol-settings.json"
