"""
LanDrop session: the composition root of the client coordination layer.

Owns the two shared stores (device registry, notification feed) and the
components that write to them. Everything is built per instance, so tests
can run as many isolated sessions as they like.
"""

import logging

from backend.port import Backend
from discovery.controller import DiscoveryController
from discovery.models import Device
from discovery.registry import DeviceRegistry
from events.subscriber import EventSubscriber, SubscriptionError
from notifications.feed import NotificationFeed
from notifications.models import NotificationKind
from scheduler import LoopScheduler, Scheduler
from transfer.dispatcher import TransferDispatcher
from transfer.picker import FilePicker

logger = logging.getLogger(__name__)


class LanDropSession:
    """Wires the backend to the registry and feed for one application run."""

    def __init__(
        self,
        backend: Backend,
        file_picker: FilePicker,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.backend = backend
        self.scheduler = scheduler or LoopScheduler()
        self.registry = DeviceRegistry()
        self.feed = NotificationFeed(self.scheduler)
        self.discovery = DiscoveryController(backend, self.registry, self.scheduler)
        self.subscriber = EventSubscriber(backend, self.feed)
        self.dispatcher = TransferDispatcher(backend, self.feed, file_picker)
        self.current_device: Device | None = None
        self._started = False

    async def __aenter__(self) -> "LanDropSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        if self._started:
            return
        self._started = True

        try:
            self.current_device = await self.backend.get_device_info()
            logger.info(
                f"Running as {self.current_device.name} ({self.current_device.ip})"
            )
        except Exception as e:
            logger.error(f"Failed to get device info: {e}")

        try:
            await self.subscriber.start()
        except SubscriptionError:
            self.feed.notify(
                NotificationKind.WARNING,
                "Live updates unavailable",
                "Incoming files and texts will not be shown",
            )

    async def close(self) -> None:
        if not self._started:
            return
        self._started = False

        try:
            await self.discovery.shutdown()
        except Exception as e:
            logger.error(f"Failed to stop discovery on shutdown: {e}")
        await self.subscriber.stop()
        self.feed.close()
        logger.info("Session closed")

    # --- Operations exposed to the presentation layer ---

    async def toggle_discovery(self) -> bool:
        return await self.discovery.toggle()

    async def send_file(self, device: Device | None, file_path: str | None = None) -> bool:
        return await self.dispatcher.send_file(device, file_path)

    async def send_text(self, device: Device | None, text: str) -> bool:
        return await self.dispatcher.send_text(device, text)
