"""
Backend port.

Everything this client needs from the LanDrop backend process. The
backend owns discovery, transport and file I/O; this layer only calls it.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from discovery.models import Device

# Push channels emitted by the backend
FILE_RECEIVED = "file-received"
TEXT_RECEIVED = "text-received"

PushHandler = Callable[[dict[str, Any]], Awaitable[None]]
Release = Callable[[], Awaitable[None]]


class BackendError(Exception):
    """A backend call failed (transport, HTTP status or bad payload)."""


class Backend(ABC):
    """Abstract interface to the backend process."""

    @abstractmethod
    async def get_device_info(self) -> Device:
        """This machine's own identity."""

    @abstractmethod
    async def start_discovery(self) -> None:
        ...

    @abstractmethod
    async def stop_discovery(self) -> None:
        ...

    @abstractmethod
    async def get_devices(self) -> list[Device]:
        """Full current device snapshot."""

    @abstractmethod
    async def send_file(self, file_path: str, target_device: Device) -> None:
        ...

    @abstractmethod
    async def send_text(self, text: str, target_device: Device) -> None:
        ...

    @abstractmethod
    async def subscribe(self, event: str, handler: PushHandler) -> Release:
        """
        Listen to a push channel.

        Returns an async callable that ends the subscription.
        """
