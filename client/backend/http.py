"""
HTTP + WebSocket backend adapter.

Request/response calls go over the backend's REST API; push events arrive
on a single shared WebSocket as {"event": ..., "data": ...} frames.
"""

import asyncio
import json
import logging
from typing import Any

import httpx
import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from backend.port import Backend, BackendError, PushHandler, Release
from config import BACKEND_URL, BACKEND_WS_URL, REQUEST_TIMEOUT, RETRY_DELAY
from discovery.models import Device

logger = logging.getLogger(__name__)

# asyncio.TimeoutError is not an OSError before Python 3.11
CONNECT_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError)


class PushChannel:
    """
    Fans out WebSocket push frames to subscribed handlers.

    The connection is opened with the first subscription and closed when
    the last one is released. A fresh channel must connect once before
    ``add`` returns; after that, dropped connections are re-established
    while anyone is still listening.
    """

    def __init__(self, url: str, retry_delay: float = RETRY_DELAY) -> None:
        self._url = url
        self._retry_delay = retry_delay
        self._handlers: dict[str, list[PushHandler]] = {}
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def handler_count(self) -> int:
        return sum(len(hs) for hs in self._handlers.values())

    async def add(self, event: str, handler: PushHandler) -> Release:
        """
        Register a handler for one push event.

        Raises BackendError if the channel was closed and its first
        connection attempt fails.
        """
        if not self.running:
            await self._open()
        self._handlers.setdefault(event, []).append(handler)

        released = False

        async def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._handlers.pop(event, None)
            if not self._handlers:
                await self.close()

        return release

    async def close(self) -> None:
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Push channel closed")

    async def _open(self) -> None:
        connected = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(self._run(connected))
        try:
            await connected
        except CONNECT_ERRORS as e:
            await self.close()
            raise BackendError(f"Push channel unavailable at {self._url}: {e!r}") from e

    async def _run(self, connected: asyncio.Future) -> None:
        while True:
            try:
                async with websockets.connect(self._url) as ws:
                    logger.info(f"Push channel connected: {self._url}")
                    if not connected.done():
                        connected.set_result(None)
                    async for raw in ws:
                        await self.dispatch(raw)
                logger.warning("Push channel closed by backend")
            except CONNECT_ERRORS as e:
                if not connected.done():
                    connected.set_exception(e)
                    return
                logger.error(f"Push channel error: {e!r}")
            await asyncio.sleep(self._retry_delay)

    async def dispatch(self, raw: str | bytes) -> None:
        """Route one frame to the handlers of its event."""
        try:
            message = json.loads(raw)
            event = message["event"]
            data = message.get("data") or {}
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed push frame: {e}")
            return

        for handler in list(self._handlers.get(event, [])):
            try:
                await handler(data)
            except Exception as e:
                logger.error(f"Push handler error for '{event}': {e}", exc_info=True)


class HttpBackend(Backend):
    """Backend reached over HTTP on the local machine."""

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        ws_url: str = BACKEND_WS_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )
        self._push = PushChannel(ws_url)

    @property
    def push_channel(self) -> PushChannel:
        return self._push

    async def _request(self, method: str, path: str, body: dict | None = None) -> Any:
        try:
            response = await self._client.request(method, path, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"{method} {path} returned invalid JSON: {e}") from e

    async def get_device_info(self) -> Device:
        data = await self._request("GET", "/api/device")
        try:
            return Device.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Invalid device info: {e}") from e

    async def start_discovery(self) -> None:
        await self._request("POST", "/api/discovery/start")

    async def stop_discovery(self) -> None:
        await self._request("POST", "/api/discovery/stop")

    async def get_devices(self) -> list[Device]:
        data = await self._request("GET", "/api/devices")
        try:
            return [Device.model_validate(d) for d in data["devices"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise BackendError(f"Invalid device list: {e}") from e

    async def send_file(self, file_path: str, target_device: Device) -> None:
        await self._request(
            "POST",
            "/api/send/file",
            body={"file_path": file_path, "target_device": target_device.model_dump()},
        )

    async def send_text(self, text: str, target_device: Device) -> None:
        await self._request(
            "POST",
            "/api/send/text",
            body={"text": text, "target_device": target_device.model_dump()},
        )

    async def subscribe(self, event: str, handler: PushHandler) -> Release:
        return await self._push.add(event, handler)

    async def aclose(self) -> None:
        await self._push.close()
        await self._client.aclose()
