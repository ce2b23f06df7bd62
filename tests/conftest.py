"""
Shared fixtures for LanDrop client tests.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from backend.port import Backend
from discovery.models import Device
from notifications.feed import NotificationFeed
from scheduler import VirtualScheduler


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def scheduler():
    """Virtual clock; advance it explicitly with scheduler.advance(seconds)."""
    return VirtualScheduler()


@pytest.fixture
def make_device():
    """Build a Device with sensible defaults.

    Usage:
        bob = make_device("b", name="Bob")
    """
    def _make(device_id: str = "a", **overrides) -> Device:
        fields = {
            "id": device_id,
            "name": f"device-{device_id}",
            "ip": "192.168.1.20",
            "port": 8080,
            "device_type": "desktop",
            "os": "linux",
            "last_seen": 1700000000,
        }
        fields.update(overrides)
        return Device(**fields)
    return _make


@pytest.fixture
def mock_backend(make_device):
    """AsyncMock implementing the Backend port.

    subscribe() hands out a fresh release AsyncMock per call; they are
    collected in backend.releases, handlers in backend.handlers.
    """
    backend = AsyncMock(spec=Backend)
    backend.get_device_info.return_value = make_device("self", name="This PC")
    backend.get_devices.return_value = []
    backend.handlers = {}
    backend.releases = []

    async def _subscribe(event, handler):
        backend.handlers[event] = handler
        release = AsyncMock()
        backend.releases.append(release)
        return release

    backend.subscribe.side_effect = _subscribe
    return backend


@pytest.fixture
def mock_picker():
    """FilePicker stub; set mock_picker.pick_file.return_value per test."""
    picker = AsyncMock()
    picker.pick_file.return_value = "/home/user/report.pdf"
    return picker


@pytest.fixture
def feed(scheduler):
    return NotificationFeed(scheduler)
