"""REST API routes exposed to the LanDrop UI."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Injected by main.py at startup
_session = None


def init_routes(session) -> None:
    """Inject the LanDropSession into the routes module."""
    global _session
    _session = session


def _find_device(device_id: str):
    device = _session.registry.get(device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    return device


# --- Devices ---

@router.get("/device")
async def get_device_info():
    """Return this machine's own identity."""
    if _session.current_device is None:
        raise HTTPException(status_code=404, detail="Device info unavailable")
    return _session.current_device.model_dump()


@router.get("/devices")
async def list_devices():
    """Return the last polled device snapshot."""
    return {"devices": [d.model_dump() for d in _session.registry.devices]}


# --- Discovery ---

@router.get("/discovery")
async def discovery_state():
    return {"active": _session.discovery.active}


@router.post("/discovery/toggle")
async def toggle_discovery():
    active = await _session.toggle_discovery()
    return {"active": active}


# --- Notifications ---

@router.get("/notifications")
async def list_notifications():
    """Return visible notifications, most recent first."""
    return {
        "notifications": [n.model_dump(mode="json") for n in _session.feed.items]
    }


# --- Transfers ---

class SendTextBody(BaseModel):
    device_id: str
    text: str


class SendFileBody(BaseModel):
    device_id: str
    file_path: str | None = None


@router.post("/send/text")
async def send_text(body: SendTextBody):
    device = _find_device(body.device_id)
    sent = await _session.send_text(device, body.text)
    return {"sent": sent}


@router.post("/send/file")
async def send_file(body: SendFileBody):
    """Send a file; without file_path a native picker is shown."""
    device = _find_device(body.device_id)
    sent = await _session.send_file(device, body.file_path)
    return {"sent": sent}
