"""Chat message domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from core.clock import utc_now

MAX_MESSAGE_LENGTH = 1000
MESSAGE_LOG_LIMIT = 1000


class MessageType(str, Enum):
    """Kind of chat message."""

    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    SYSTEM = "system"


@dataclass(frozen=True)
class Attachment:
    """File attached to a chat message."""

    filename: str
    url: str
    size: int | None = None
    mime_type: str | None = None


@dataclass
class ChatMessage:
    """Entry of the group chat log."""

    sender_id: UUID
    content: str
    id: UUID = field(default_factory=uuid4)
    type: MessageType = MessageType.TEXT
    attachments: list[Attachment] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)
    edited: bool = False
    edited_at: datetime | None = None
