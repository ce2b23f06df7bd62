"""
Discovery controller.

Turns backend discovery on and off and, while it is on, polls the
backend's device list on a fixed interval into the DeviceRegistry.
"""

import asyncio
import logging

from backend.port import Backend
from config import POLL_INTERVAL
from discovery.registry import DeviceRegistry
from scheduler import Scheduler

logger = logging.getLogger(__name__)


class AlreadyActive(Exception):
    """start() was called while discovery is already running."""


class DiscoveryController:
    """Owns the discovery on/off state and the single poll task."""

    def __init__(
        self,
        backend: Backend,
        registry: DeviceRegistry,
        scheduler: Scheduler,
        interval: float = POLL_INTERVAL,
    ) -> None:
        self._backend = backend
        self._registry = registry
        self._scheduler = scheduler
        self._interval = interval
        self._active = False
        self._poll_task: asyncio.Task | None = None
        # Bumped on every start/stop; ticks from an older generation are discarded
        self._generation = 0
        self._toggle_lock = asyncio.Lock()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def start(self) -> None:
        """Start backend discovery and the recurring poll."""
        if self._active:
            raise AlreadyActive("Discovery is already active")

        await self._backend.start_discovery()

        await self._cancel_poll()
        self._generation += 1
        self._active = True
        self._poll_task = asyncio.create_task(self._poll_loop(self._generation))
        logger.info(f"Discovery started, polling every {self._interval}s")

    async def stop(self) -> None:
        """Stop backend discovery, cancel polling and clear the registry."""
        if not self._active:
            return

        try:
            await self._backend.stop_discovery()
        finally:
            self._generation += 1
            self._active = False
            await self._cancel_poll()
            self._registry.clear()
            logger.info("Discovery stopped")

    async def toggle(self) -> bool:
        """Flip discovery on/off. Returns the resulting state."""
        async with self._toggle_lock:
            try:
                if self._active:
                    await self.stop()
                else:
                    await self.start()
            except Exception as e:
                logger.error(f"Failed to toggle discovery: {e}")
            return self._active

    async def shutdown(self) -> None:
        """Stop discovery once any in-flight toggle has finished."""
        async with self._toggle_lock:
            await self.stop()

    async def poll_once(self) -> bool:
        """
        Fetch the device list once and replace the registry with it.

        Returns True if the registry was updated. Failures are logged and
        leave the registry untouched; so do responses that arrive after
        discovery was stopped.
        """
        generation = self._generation
        try:
            devices = await self._backend.get_devices()
        except Exception as e:
            logger.warning(f"Failed to get devices: {e}")
            return False

        if not self._active or generation != self._generation:
            logger.debug("Discarding device list from a stopped discovery run")
            return False

        self._registry.replace(devices)
        return True

    async def _poll_loop(self, generation: int) -> None:
        while self._active and generation == self._generation:
            await self._scheduler.sleep(self._interval)
            await self.poll_once()

    async def _cancel_poll(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
