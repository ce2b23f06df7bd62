"""Pydantic models for peer discovery."""

from pydantic import BaseModel


class Device(BaseModel):
    """A peer on the LAN, as reported by the backend."""
    id: str
    name: str
    ip: str
    port: int
    device_type: str
    os: str
    last_seen: int  # Unix timestamp, display only
