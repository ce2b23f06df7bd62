"""Pydantic models for backend push events."""

from pydantic import BaseModel, ConfigDict, Field

from discovery.models import Device


class FileReceivedEvent(BaseModel):
    """Payload of the file-received push channel."""
    model_config = ConfigDict(populate_by_name=True)

    sender: Device
    file_name: str = Field(alias="fileName")
    file_path: str | None = Field(default=None, alias="filePath")
    file_size: int | None = Field(default=None, alias="fileSize")
    mime_type: str | None = Field(default=None, alias="mimeType")
    timestamp: int | None = None


class TextReceivedEvent(BaseModel):
    """Payload of the text-received push channel."""
    sender: Device
    content: str
    timestamp: int | None = None
