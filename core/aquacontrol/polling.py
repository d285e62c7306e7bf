"""
Device Polling Service

Background service that polls the device status at a fixed interval and
publishes the reconciled SystemStatus. Runs independently of the UI so the
dashboard always has the latest reading available.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from .device_client import DeviceClient
from .display import DEFAULT_LOCALE, connection_error_message
from .exceptions import DeviceConnectionError
from .models import SystemStatus

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class PollingScheduler:
    """
    Owns the polling task for one device.

    Only one status request is applied at a time: every poll takes a new
    generation number, a newer poll cancels the one in flight, and results
    from an outdated generation are discarded.
    """

    def __init__(
        self,
        client: DeviceClient,
        address: str,
        interval: int,
        locale: str = DEFAULT_LOCALE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.address = address
        self.interval = interval
        self.locale = locale
        self._sleep = sleep
        self._now = now

        self.status = SystemStatus()
        self.state = PollState.IDLE
        self.connection_error: Optional[str] = None
        self.error_code: Optional[str] = None

        self._generation = 0
        self._inflight: asyncio.Task | None = None
        self._task: asyncio.Task | None = None
        self._followups: set[asyncio.Task] = set()
        self._has_polled = False
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_loading(self) -> bool:
        return self.state == PollState.LOADING

    async def start(self):
        """Poll immediately, then keep polling every interval."""
        if self._running:
            logger.warning("Polling scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Polling {self.address or '<no address>'} every {self.interval}s")

    async def stop(self):
        """Cancel the polling task, any in-flight poll and pending refreshes."""
        was_running = self._running
        self._running = False
        self._generation += 1
        tasks = [t for t in (self._task, self._inflight, *self._followups) if t and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._task = None
        self._inflight = None
        self._followups.clear()
        if was_running:
            logger.info("Polling scheduler stopped")

    async def reconfigure(self, address: str, interval: int) -> bool:
        """Replace the polling task if the address or interval changed.

        Returns:
            True if the scheduler was restarted
        """
        if address == self.address and interval == self.interval:
            return False

        was_running = self._running
        await self.stop()
        self.address = address
        self.interval = interval
        logger.info(f"Polling reconfigured: address={address}, interval={interval}s")
        if was_running:
            await self.start()
        return True

    async def refetch(self) -> SystemStatus:
        """Poll the device now, out of band. Does not affect the timer cadence."""
        if self._inflight and not self._inflight.done():
            self._inflight.cancel()

        self._generation += 1
        generation = self._generation
        if not self._has_polled:
            self.state = PollState.LOADING

        inflight = asyncio.create_task(self.client.fetch_status(self.address))
        self._inflight = inflight
        try:
            device = await inflight
        except asyncio.CancelledError:
            if asyncio.current_task().cancelling():
                raise
            logger.debug("Status poll superseded by a newer request")
            return self.status
        except DeviceConnectionError as e:
            if generation == self._generation:
                self._apply_failure(e)
        except Exception as e:
            logger.error(f"Unexpected error while polling device: {e}", exc_info=True)
            if generation == self._generation:
                self._apply_failure(e)
        else:
            if generation == self._generation:
                self._apply_success(SystemStatus.from_device(device))
        finally:
            if self._inflight is inflight:
                self._inflight = None

        return self.status

    def refetch_later(self, delay: float = 0.5) -> asyncio.Task:
        """Schedule a refetch, e.g. to pick up the result of a command."""

        async def _delayed():
            await self._sleep(delay)
            await self.refetch()

        task = asyncio.create_task(_delayed())
        self._followups.add(task)
        task.add_done_callback(self._followups.discard)
        return task

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "isLoading": self.is_loading,
            "connectionError": self.connection_error,
            "errorCode": self.error_code,
            "status": self.status.to_dict(),
        }

    def _apply_success(self, status: SystemStatus):
        if self.state != PollState.CONNECTED:
            logger.info(f"Connected to device at {self.address}")
        self.status = status
        self.state = PollState.CONNECTED
        self.connection_error = None
        self.error_code = None
        self._has_polled = True

    def _apply_failure(self, error: Exception):
        code = getattr(error, "code", "unknown")
        if self.state != PollState.DISCONNECTED:
            logger.warning(f"Device poll failed ({code}): {error}")
        else:
            logger.debug(f"Device poll failed ({code}): {error}")
        # Keep the last readings visible
        self.status = replace(self.status, is_connected=False, last_update=self._now())
        self.state = PollState.DISCONNECTED
        self.connection_error = connection_error_message(error, self.locale)
        self.error_code = code
        self._has_polled = True

    async def _run_loop(self):
        """Main polling loop - polls, then waits out the rest of the interval."""
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            try:
                await self.refetch()
            except Exception as e:
                logger.error(f"Error in polling loop: {e}", exc_info=True)

            elapsed = loop.time() - started
            await self._sleep(max(0.0, self.interval - elapsed))
