"""Pydantic models for user-facing notifications."""

import time
import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    """What a notification is about; drives the icon in the UI."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    FILE = "file"
    TEXT = "text"


class Notification(BaseModel):
    """An ephemeral, immutable record shown to the user."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: NotificationKind
    title: str
    message: str
    timestamp: float = Field(default_factory=time.time)
