"""
Event subscriber.

Listens to the backend's inbound file/text push channels for the whole
session and turns every event into a notification.
"""

import logging
from typing import Any

from pydantic import ValidationError

from backend.port import FILE_RECEIVED, TEXT_RECEIVED, Backend, Release
from config import TEXT_PREVIEW_LENGTH
from events.models import FileReceivedEvent, TextReceivedEvent
from notifications.feed import NotificationFeed
from notifications.models import NotificationKind

logger = logging.getLogger(__name__)


class SubscriptionError(Exception):
    """Push subscriptions could not be set up; inbound events will be missed."""


def preview(content: str, limit: int = TEXT_PREVIEW_LENGTH) -> str:
    """First `limit` characters, with an ellipsis if anything was cut."""
    if len(content) > limit:
        return content[:limit] + "..."
    return content


class EventSubscriber:
    """Owns the two push subscriptions and their release handles."""

    def __init__(self, backend: Backend, feed: NotificationFeed) -> None:
        self._backend = backend
        self._feed = feed
        self._releases: list[Release] = []

    @property
    def subscribed(self) -> bool:
        return bool(self._releases)

    async def start(self) -> None:
        """Subscribe to both push channels."""
        if self._releases:
            return
        try:
            self._releases.append(
                await self._backend.subscribe(FILE_RECEIVED, self._handle_file)
            )
            self._releases.append(
                await self._backend.subscribe(TEXT_RECEIVED, self._handle_text)
            )
        except Exception as e:
            logger.critical(f"Push subscription failed, inbound events disabled: {e}")
            await self.stop()
            raise SubscriptionError(str(e)) from e
        logger.info("Subscribed to inbound file/text events")

    async def stop(self) -> None:
        """Release every outstanding subscription exactly once."""
        releases, self._releases = self._releases, []
        for release in releases:
            try:
                await release()
            except Exception as e:
                logger.error(f"Failed to release push subscription: {e}", exc_info=True)
        if releases:
            logger.info("Push subscriptions released")

    async def _handle_file(self, payload: dict[str, Any]) -> None:
        try:
            event = FileReceivedEvent.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid file-received payload: {e}")
            return
        self.on_file_received(event)

    async def _handle_text(self, payload: dict[str, Any]) -> None:
        try:
            event = TextReceivedEvent.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid text-received payload: {e}")
            return
        self.on_text_received(event)

    def on_file_received(self, event: FileReceivedEvent) -> None:
        logger.info(f"File received: {event.file_name} from {event.sender.name}")
        self._feed.notify(
            NotificationKind.FILE,
            "File received",
            f"Received {event.file_name} from {event.sender.name}",
        )

    def on_text_received(self, event: TextReceivedEvent) -> None:
        logger.info(f"Text received from {event.sender.name}")
        self._feed.notify(
            NotificationKind.TEXT,
            "Text received",
            f"Received from {event.sender.name}: {preview(event.content)}",
        )
