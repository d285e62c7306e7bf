"""
Device REST API Client for AquaControl

Minimal client for the two calls the valve controller exposes:
``GET /api/status`` and ``POST /api/command``.
"""

import asyncio
import errno
import logging
from typing import Any, Optional, Union

import requests

from .exceptions import (
    AddressMissingError,
    ConfigurationError,
    DeviceHTTPError,
    DeviceNetworkError,
    DeviceTimeoutError,
    DeviceUnreachableError,
    MalformedResponseError,
)
from .models import DeviceStatus, ValveClose, ValveCommand, ValveOpen, parse_command

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 5.0

# Socket errors meaning this host has no route to the device's network
_NO_ROUTE_ERRNOS = {errno.ENETUNREACH, errno.EHOSTUNREACH}


def _no_route(error: BaseException) -> bool:
    """Check whether a connection error was caused by a missing route."""
    pending = [error]
    seen = set()
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno in _NO_ROUTE_ERRNOS:
            return True
        # urllib3 wraps the socket error in MaxRetryError.reason
        pending.extend([current.__cause__, current.__context__, getattr(current, "reason", None)])
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


class DeviceClient:
    """Simple device REST API client."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        """Initialize device client.

        Args:
            timeout: Hard deadline for each request, in seconds
            session: Optional pre-built session (connection pooling)
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def close(self) -> None:
        self.session.close()

    async def fetch_status(self, address: str) -> DeviceStatus:
        """Read the current device status.

        Args:
            address: Device host or host:port (e.g., "192.168.4.1")

        Returns:
            Decoded status payload

        Raises:
            AddressMissingError: If no address is configured
            DeviceTimeoutError: If the device does not answer within the timeout
            DeviceUnreachableError: On network-level failures
            DeviceNetworkError: If there is no route to the device network
            DeviceHTTPError: On a non-2xx response
            MalformedResponseError: If the body is not the expected JSON shape
        """
        address = (address or "").strip()
        if not address:
            raise AddressMissingError("Device address is not configured")

        url = f"http://{address}/api/status"
        response = await self._call(self.session.get, url)

        if not response.ok:
            raise DeviceHTTPError(response.status_code, response.reason or "")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Status body is not JSON: {e}") from e

        return DeviceStatus.from_payload(payload)

    async def send_command(
        self,
        address: str,
        command: Union[ValveCommand, str],
        value: Any = None,
    ) -> bool:
        """Send a valve command to the device.

        Args:
            address: Device host
            command: ValveOpen/ValveClose, or its wire form (e.g., "valve1_open")
            value: Optional command argument

        Returns:
            True if the device answered with a 2xx status, False otherwise
        """
        address = (address or "").strip()
        if not address:
            logger.warning("Cannot send command: device address is not configured")
            return False

        try:
            if not isinstance(command, (ValveOpen, ValveClose)):
                command = parse_command(command)
        except (ConfigurationError, AttributeError) as e:
            logger.error(f"Rejected invalid command {command!r}: {e}")
            return False

        url = f"http://{address}/api/command"
        data = {"command": command.command, "value": value}

        try:
            logger.debug(f"Calling {url} with data: {data}")
            response = await self._call(self.session.post, url, json=data)
        except Exception as e:
            logger.error(f"Failed to send command {command.command}: {e}")
            return False

        logger.info(f"Sent {command.command} - Response: {response.status_code}")
        return response.ok

    async def _call(self, method, url: str, **kwargs) -> requests.Response:
        """Run a blocking request in a worker thread under a hard deadline."""
        # wait_for cannot stop the worker thread; after a fired deadline it runs
        # on until the requests socket timeout (per connect/read) ends it.
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(method, url, timeout=self.timeout, **kwargs),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, requests.exceptions.Timeout) as e:
            raise DeviceTimeoutError(f"No response from {url} within {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            if _no_route(e):
                raise DeviceNetworkError(f"No route to {url}: {e}") from e
            raise DeviceUnreachableError(f"Request to {url} failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise DeviceUnreachableError(f"Request to {url} failed: {e}") from e
