"""
Transfer dispatcher.

Forwards user-initiated text/file sends to the backend and reports the
outcome as a notification. One backend round-trip per call, no retries.
"""

import logging

from backend.port import Backend
from config import FILE_FILTERS
from discovery.models import Device
from notifications.feed import NotificationFeed
from notifications.models import NotificationKind
from transfer.models import FilePayload, TextPayload, TransferAction, TransferRequest
from transfer.picker import FilePicker

logger = logging.getLogger(__name__)


class TransferDispatcher:
    """Sends payloads to devices, one in flight per (action, device)."""

    def __init__(
        self, backend: Backend, feed: NotificationFeed, file_picker: FilePicker
    ) -> None:
        self._backend = backend
        self._feed = feed
        self._file_picker = file_picker
        self._in_flight: set[tuple[TransferAction, str]] = set()

    def is_sending(self, action: TransferAction, device_id: str) -> bool:
        return (action, device_id) in self._in_flight

    async def dispatch(self, request: TransferRequest) -> bool:
        """Route a TransferRequest to the matching send operation."""
        if isinstance(request.payload, TextPayload):
            return await self.send_text(request.target, request.payload.text)
        if isinstance(request.payload, FilePayload):
            return await self.send_file(request.target, request.payload.path)
        raise TypeError(f"Unsupported payload: {type(request.payload).__name__}")

    async def send_file(self, device: Device | None, file_path: str | None = None) -> bool:
        """
        Send a file to a device.

        Without a file_path the user is asked to pick one; cancelling the
        picker is a silent no-op. Returns True if the backend accepted it.
        """
        if device is None:
            return False
        key = (TransferAction.FILE, device.id)
        if key in self._in_flight:
            logger.debug(f"File send to {device.name} already in flight")
            return False

        self._in_flight.add(key)
        try:
            if file_path is None:
                file_path = await self._file_picker.pick_file(FILE_FILTERS)
                if file_path is None:
                    logger.info("File selection cancelled")
                    return False

            await self._backend.send_file(file_path, device)
        except Exception as e:
            logger.error(f"Failed to send file to {device.name}: {e}")
            self._feed.notify(
                NotificationKind.ERROR, "File send failed", "Failed to send file"
            )
            return False
        finally:
            self._in_flight.discard(key)

        logger.info(f"File {file_path} sent to {device.name}")
        self._feed.notify(
            NotificationKind.SUCCESS, "File sent", f"File sent to {device.name}"
        )
        return True

    async def send_text(self, device: Device | None, text: str) -> bool:
        """Send text to a device. Blank text is ignored. Returns True on success."""
        if device is None or not text or not text.strip():
            return False
        key = (TransferAction.TEXT, device.id)
        if key in self._in_flight:
            logger.debug(f"Text send to {device.name} already in flight")
            return False

        self._in_flight.add(key)
        try:
            await self._backend.send_text(text, device)
        except Exception as e:
            logger.error(f"Failed to send text to {device.name}: {e}")
            logger.debug(f"Unsent text ({len(text)} chars): {text!r}")
            self._feed.notify(
                NotificationKind.ERROR, "Text send failed", "Failed to send text"
            )
            return False
        finally:
            self._in_flight.discard(key)

        logger.info(f"Text ({len(text)} chars) sent to {device.name}")
        self._feed.notify(
            NotificationKind.SUCCESS, "Text sent", f"Text sent to {device.name}"
        )
        return True
