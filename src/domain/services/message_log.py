"""Bounded, append-only chat log of a study group."""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from core.exceptions import (
    InsufficientPermissionsError,
    InvalidMessageError,
    MessageNotFoundError,
)
from domain.entities.message import (
    MAX_MESSAGE_LENGTH,
    MESSAGE_LOG_LIMIT,
    Attachment,
    ChatMessage,
    MessageType,
)
from domain.entities.study_group import StudyGroup

DEFAULT_PAGE_SIZE = 50


def _validate_content(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise InvalidMessageError("Message content is required")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidMessageError(
            f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters"
        )
    return text


def _parse_type(message_type: MessageType | str) -> MessageType:
    try:
        return MessageType(message_type)
    except ValueError:
        raise InvalidMessageError(f"Unsupported message type: {message_type}") from None


def build_message(
    sender_id: UUID,
    content: str,
    message_type: MessageType | str = MessageType.TEXT,
    attachments: Sequence[Attachment] = (),
    *,
    now: datetime,
) -> ChatMessage:
    """Validate input and create a message. Content is stored trimmed."""
    return ChatMessage(
        sender_id=sender_id,
        content=_validate_content(content),
        type=_parse_type(message_type),
        attachments=list(attachments),
        timestamp=now,
    )


def append_message(
    group: StudyGroup, message: ChatMessage, limit: int = MESSAGE_LOG_LIMIT
) -> StudyGroup:
    """Append to the log, keeping only the newest ``limit`` entries."""
    messages = [*group.messages, message]
    if len(messages) > limit:
        messages = messages[-limit:]
    return replace(group, messages=messages)


def edit_message(
    group: StudyGroup,
    message_id: UUID,
    sender_id: UUID,
    content: str,
    *,
    now: datetime,
) -> StudyGroup:
    """Rewrite the content of a message. Only its sender may do so."""
    original = next((m for m in group.messages if m.id == message_id), None)
    if original is None:
        raise MessageNotFoundError(str(message_id))
    if original.sender_id != sender_id:
        raise InsufficientPermissionsError("sender")

    edited = replace(
        original,
        content=_validate_content(content),
        edited=True,
        edited_at=now,
    )
    return replace(
        group,
        messages=[edited if m.id == message_id else m for m in group.messages],
    )


def recent_messages(
    group: StudyGroup,
    limit: int = DEFAULT_PAGE_SIZE,
    before: datetime | None = None,
) -> list[ChatMessage]:
    """Newest ``limit`` messages (strictly older than ``before``), oldest first."""
    messages = group.messages
    if before is not None:
        messages = [m for m in messages if m.timestamp < before]
    if limit <= 0:
        return []
    return list(messages[-limit:])
