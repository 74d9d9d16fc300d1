"""Pydantic schemas for chat API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AttachmentSchema(BaseModel):
    """File attached to a chat message."""

    model_config = ConfigDict(from_attributes=True)

    filename: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=500)
    size: int | None = Field(None, ge=0)
    mime_type: str | None = Field(None, max_length=100)


class MessageCreate(BaseModel):
    """Schema for sending a chat message.

    Content length and type are validated by the chat log itself.
    """

    content: str
    type: str = "text"
    attachments: list[AttachmentSchema] = Field(default_factory=list, max_length=10)


class MessageUpdate(BaseModel):
    """Schema for editing a chat message."""

    content: str


class ChatMessageResponse(BaseModel):
    """Schema for Chat Message response."""

    id: UUID
    sender_id: UUID
    content: str
    type: str
    attachments: list[AttachmentSchema]
    timestamp: datetime
    edited: bool
    edited_at: datetime | None


class ChatMessageListResponse(BaseModel):
    """Schema for list of Chat Messages response."""

    data: list[ChatMessageResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class ChatMessageDetailResponse(BaseModel):
    """Schema for single Chat Message response."""

    data: ChatMessageResponse
