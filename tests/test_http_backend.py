"""
Tests for the HTTP/WebSocket backend adapter.
"""

import asyncio
import json

import httpx
import pytest
import websockets
from unittest.mock import AsyncMock

from backend.http import HttpBackend, PushChannel
from conftest import settle
from backend.port import BackendError


DEVICE = {
    "id": "a",
    "name": "Alice",
    "ip": "192.168.1.10",
    "port": 8080,
    "device_type": "desktop",
    "os": "windows",
    "last_seen": 1700000000,
}


def _backend(handler) -> HttpBackend:
    return HttpBackend(
        base_url="http://backend.test",
        ws_url="ws://backend.test/ws",
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    """REST calls and error mapping."""

    @pytest.mark.asyncio
    async def test_get_devices_parses_snapshot(self):
        def handler(request):
            assert request.url.path == "/api/devices"
            return httpx.Response(200, json={"devices": [DEVICE]})

        backend = _backend(handler)
        devices = await backend.get_devices()

        assert [d.name for d in devices] == ["Alice"]
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_get_device_info(self):
        backend = _backend(lambda request: httpx.Response(200, json=DEVICE))

        device = await backend.get_device_info()

        assert device.id == "a"
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_send_text_posts_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "success"})

        backend = _backend(handler)

        await backend.send_text("hello", await _device())

        assert seen["path"] == "/api/send/text"
        assert seen["body"] == {"text": "hello", "target_device": DEVICE}
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_discovery_toggles_post(self):
        paths = []

        def handler(request):
            paths.append((request.method, request.url.path))
            return httpx.Response(204)

        backend = _backend(handler)
        await backend.start_discovery()
        await backend.stop_discovery()

        assert paths == [
            ("POST", "/api/discovery/start"),
            ("POST", "/api/discovery/stop"),
        ]
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_http_error_becomes_backend_error(self):
        backend = _backend(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(BackendError):
            await backend.send_file("/tmp/a.txt", await _device())
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_becomes_backend_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        backend = _backend(handler)

        with pytest.raises(BackendError):
            await backend.get_devices()
        await backend.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"items": []}, {"devices": [{"id": "x"}]}])
    async def test_malformed_device_list_becomes_backend_error(self, payload):
        backend = _backend(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(BackendError):
            await backend.get_devices()
        await backend.aclose()


async def _device():
    backend = _backend(lambda request: httpx.Response(200, json=DEVICE))
    try:
        return await backend.get_device_info()
    finally:
        await backend.aclose()


@pytest.fixture
def channel(monkeypatch):
    """PushChannel whose connection loop just idles."""
    async def idle(self, connected):
        connected.set_result(None)
        await asyncio.Event().wait()

    monkeypatch.setattr(PushChannel, "_run", idle)
    return PushChannel("ws://backend.test/ws", retry_delay=0)


class TestPushChannel:
    """Fan-out of push frames and subscription lifetime."""

    @pytest.mark.asyncio
    async def test_dispatch_routes_by_event(self, channel):
        file_handler, text_handler = AsyncMock(), AsyncMock()
        await channel.add("file-received", file_handler)
        await channel.add("text-received", text_handler)

        await channel.dispatch(json.dumps({"event": "text-received", "data": {"content": "hi"}}))

        text_handler.assert_awaited_once_with({"content": "hi"})
        file_handler.assert_not_awaited()
        await channel.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("frame", ["not json", "[1, 2]", '{"data": {}}'])
    async def test_malformed_frames_are_ignored(self, channel, frame):
        handler = AsyncMock()
        await channel.add("file-received", handler)

        await channel.dispatch(frame)

        handler.assert_not_awaited()
        await channel.close()

    @pytest.mark.asyncio
    async def test_handler_error_does_not_stop_others(self, channel):
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        await channel.add("file-received", broken)
        await channel.add("file-received", healthy)

        await channel.dispatch(json.dumps({"event": "file-received", "data": {}}))

        healthy.assert_awaited_once()
        await channel.close()

    @pytest.mark.asyncio
    async def test_connection_closes_after_last_release(self, channel):
        release_file = await channel.add("file-received", AsyncMock())
        release_text = await channel.add("text-received", AsyncMock())
        assert channel.running

        await release_file()
        assert channel.running

        await release_text()
        await release_text()
        assert not channel.running
        assert channel.handler_count() == 0


UNREACHABLE_WS = "ws://127.0.0.1:1/ws"


def _ws_url(server) -> str:
    port = server.sockets[0].getsockname()[1]
    return f"ws://127.0.0.1:{port}/ws"


class TestPushConnection:
    """The real connection loop against a local WebSocket server."""

    @pytest.mark.asyncio
    async def test_frames_reach_handlers(self):
        async def serve(ws):
            await ws.send(json.dumps({"event": "text-received", "data": {"content": "hi"}}))
            await ws.wait_closed()

        received = asyncio.Queue()

        async def on_text(data):
            await received.put(data)

        async with websockets.serve(serve, "127.0.0.1", 0) as server:
            channel = PushChannel(_ws_url(server), retry_delay=0)
            release = await channel.add("text-received", on_text)

            data = await asyncio.wait_for(received.get(), timeout=2)

            assert data == {"content": "hi"}
            await release()

    @pytest.mark.asyncio
    async def test_reconnects_after_server_drops_connection(self):
        connections = 0

        async def serve(ws):
            nonlocal connections
            connections += 1
            await ws.send(json.dumps({"event": "file-received", "data": {"n": connections}}))

        received = asyncio.Queue()

        async def on_file(data):
            await received.put(data)

        async with websockets.serve(serve, "127.0.0.1", 0) as server:
            channel = PushChannel(_ws_url(server), retry_delay=0)
            release = await channel.add("file-received", on_file)

            first = await asyncio.wait_for(received.get(), timeout=2)
            second = await asyncio.wait_for(received.get(), timeout=2)

            assert [first["n"], second["n"]] == [1, 2]
            assert channel.running
            await release()

    @pytest.mark.asyncio
    async def test_unreachable_backend_fails_subscription(self):
        channel = PushChannel(UNREACHABLE_WS, retry_delay=0)

        with pytest.raises(BackendError):
            await channel.add("file-received", AsyncMock())

        assert not channel.running
        assert channel.handler_count() == 0

    @pytest.mark.asyncio
    async def test_connect_timeout_fails_subscription(self, monkeypatch):
        class TimingOut:
            async def __aenter__(self):
                raise asyncio.TimeoutError()

            async def __aexit__(self, *exc_info):
                return False

        monkeypatch.setattr(websockets, "connect", lambda url: TimingOut())
        channel = PushChannel("ws://backend.test/ws", retry_delay=0)

        with pytest.raises(BackendError):
            await channel.add("text-received", AsyncMock())
        assert not channel.running

    @pytest.mark.asyncio
    async def test_timeout_after_connect_keeps_retrying(self, monkeypatch):
        attempts = 0

        class Flaky:
            async def __aenter__(self):
                nonlocal attempts
                attempts += 1
                if attempts > 1:
                    raise asyncio.TimeoutError()
                return self

            async def __aexit__(self, *exc_info):
                return False

            def __aiter__(self):
                return self

            async def __anext__(self):
                raise StopAsyncIteration

        monkeypatch.setattr(websockets, "connect", lambda url: Flaky())
        channel = PushChannel("ws://backend.test/ws", retry_delay=0)
        release = await channel.add("text-received", AsyncMock())

        await settle()

        assert attempts > 2
        assert channel.running
        await release()
