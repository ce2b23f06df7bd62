"""Pydantic models for outbound transfers."""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from discovery.models import Device


class TransferAction(str, Enum):
    """Kind of outbound send; also the single-flight key prefix."""
    TEXT = "text"
    FILE = "file"


class TextPayload(BaseModel):
    type: Literal["text"] = "text"
    text: str


class FilePayload(BaseModel):
    """A file to send. No path means: ask the user to pick one."""
    type: Literal["file"] = "file"
    path: str | None = None


class TransferRequest(BaseModel):
    """A one-shot send of a payload to a device. Never retried."""
    target: Device
    payload: Union[TextPayload, FilePayload] = Field(discriminator="type")
