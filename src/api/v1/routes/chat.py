"""Study group chat API routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_study_group_service
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.message import (
    AttachmentSchema,
    ChatMessageDetailResponse,
    ChatMessageListResponse,
    ChatMessageResponse,
    MessageCreate,
    MessageUpdate,
)
from core.rate_limit import limiter
from domain.entities.message import MESSAGE_LOG_LIMIT, Attachment, ChatMessage
from domain.services.study_group_service import StudyGroupService

router = APIRouter(
    prefix="/study-groups/{group_id}/messages",
    tags=["chat"],
)


@router.post(
    "",
    response_model=ChatMessageDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a chat message",
    responses={
        201: {"description": "Message appended"},
        400: {"model": ErrorResponse, "description": "Invalid message"},
        403: {"model": ErrorResponse, "description": "Members only"},
        404: {"model": ErrorResponse, "description": "Study group not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def send_message(
    request: Request,
    group_id: UUID,
    body: MessageCreate,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> ChatMessageDetailResponse:
    """Append a message to the group's chat log."""
    group = await service.append_message(
        group_id,
        sender_id=user.id,
        content=body.content,
        message_type=body.type,
        attachments=[
            Attachment(
                filename=a.filename,
                url=a.url,
                size=a.size,
                mime_type=a.mime_type,
            )
            for a in body.attachments
        ],
        actor_id=user.id,
    )
    return ChatMessageDetailResponse(data=_build_message_response(group.messages[-1]))


@router.get(
    "",
    response_model=ChatMessageListResponse,
    summary="List chat messages",
    responses={
        200: {"description": "Newest messages, oldest first"},
        403: {"model": ErrorResponse, "description": "Members only"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_messages(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=MESSAGE_LOG_LIMIT),
    before: datetime | None = Query(None),
    service: StudyGroupService = Depends(get_study_group_service),
) -> ChatMessageListResponse:
    messages = await service.get_messages(
        group_id, limit=limit, before=before, actor_id=user.id
    )
    data = [_build_message_response(m) for m in messages]
    return ChatMessageListResponse(data=data, meta={"total": len(data)})


@router.patch(
    "/{message_id}",
    response_model=ChatMessageDetailResponse,
    summary="Edit a chat message",
    responses={
        200: {"description": "Message edited"},
        403: {"model": ErrorResponse, "description": "Sender and members only"},
        404: {"model": ErrorResponse, "description": "Message not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def edit_message(
    request: Request,
    group_id: UUID,
    message_id: UUID,
    body: MessageUpdate,
    user: CurrentUser,
    service: StudyGroupService = Depends(get_study_group_service),
) -> ChatMessageDetailResponse:
    """Edit a message. Only its sender, while still a member, may edit it."""
    message = await service.edit_message(
        group_id, message_id, user.id, body.content, actor_id=user.id
    )
    return ChatMessageDetailResponse(data=_build_message_response(message))


def _build_message_response(message: ChatMessage) -> ChatMessageResponse:
    return ChatMessageResponse(
        id=message.id,
        sender_id=message.sender_id,
        content=message.content,
        type=message.type.value,
        attachments=[AttachmentSchema.model_validate(a) for a in message.attachments],
        timestamp=message.timestamp,
        edited=message.edited,
        edited_at=message.edited_at,
    )
