"""SQLAlchemy implementation of the StudyGroup repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import ensure_utc
from domain.entities.meeting import Attendee, Meeting, MeetingStatus
from domain.entities.message import Attachment, ChatMessage, MessageType
from domain.entities.study_group import (
    GroupStatus,
    Member,
    MemberRole,
    StudyGroup,
)
from infrastructure.database.models import StudyGroupModel


def _dt(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return ensure_utc(datetime.fromisoformat(value)) if value else None


class SQLAlchemyStudyGroupRepository:
    """SQLAlchemy implementation of IStudyGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> StudyGroup | None:
        """Get a study group by ID."""
        stmt = select(StudyGroupModel).where(StudyGroupModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_access_code(self, access_code: str) -> StudyGroup | None:
        """Get the private group holding an access code."""
        stmt = select(StudyGroupModel).where(StudyGroupModel.access_code == access_code)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def access_code_exists(self, access_code: str) -> bool:
        """Check whether any group already holds the access code."""
        stmt = select(StudyGroupModel.id).where(StudyGroupModel.access_code == access_code)
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def list_groups(
        self, status: GroupStatus | None = GroupStatus.ACTIVE
    ) -> list[StudyGroup]:
        """List study groups, newest first."""
        stmt = select(StudyGroupModel).order_by(StudyGroupModel.created_at.desc())
        if status is not None:
            stmt = stmt.where(StudyGroupModel.status == status.value)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, group: StudyGroup) -> StudyGroup:
        """Insert a new study group."""
        model = StudyGroupModel(id=group.id, version=group.version, **self._columns(group))
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def compare_and_swap(self, group: StudyGroup, expected_version: int) -> bool:
        """Versioned UPDATE; zero affected rows means another writer won."""
        stmt = (
            update(StudyGroupModel)
            .where(
                StudyGroupModel.id == group.id,
                StudyGroupModel.version == expected_version,
            )
            .values(version=expected_version + 1, **self._columns(group))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    # --- Mapping ---

    def _columns(self, group: StudyGroup) -> dict[str, Any]:
        """Convert domain entity to column values."""
        return {
            "name": group.name,
            "description": group.description,
            "subject": group.subject,
            "creator_id": group.creator_id,
            "is_public": group.is_public,
            "access_code": group.access_code,
            "max_members": group.max_members,
            "status": group.status.value,
            "tags": list(group.tags),
            "members": [self._member_to_dict(m) for m in group.members],
            "meetings": [self._meeting_to_dict(m) for m in group.meetings],
            "messages": [self._message_to_dict(m) for m in group.messages],
            "created_at": group.created_at,
            "updated_at": group.updated_at,
        }

    def _to_entity(self, model: StudyGroupModel) -> StudyGroup:
        """Convert ORM model to domain entity."""
        return StudyGroup(
            id=model.id,
            name=model.name,
            description=model.description,
            subject=model.subject,
            creator_id=model.creator_id,
            is_public=model.is_public,
            access_code=model.access_code,
            max_members=model.max_members,
            status=GroupStatus(model.status),
            tags=list(model.tags or []),
            members=[self._member_from_dict(d) for d in model.members or []],
            meetings=[self._meeting_from_dict(d) for d in model.meetings or []],
            messages=[self._message_from_dict(d) for d in model.messages or []],
            version=model.version,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )

    def _member_to_dict(self, member: Member) -> dict[str, Any]:
        return {
            "user_id": str(member.user_id),
            "role": member.role.value,
            "joined_at": _dt(member.joined_at),
        }

    def _member_from_dict(self, data: dict[str, Any]) -> Member:
        return Member(
            user_id=UUID(data["user_id"]),
            role=MemberRole(data["role"]),
            joined_at=_parse_dt(data["joined_at"]),
        )

    def _meeting_to_dict(self, meeting: Meeting) -> dict[str, Any]:
        return {
            "id": str(meeting.id),
            "title": meeting.title,
            "description": meeting.description,
            "scheduled_at": _dt(meeting.scheduled_at),
            "duration_minutes": meeting.duration_minutes,
            "status": meeting.status.value,
            "actual_start_time": _dt(meeting.actual_start_time),
            "actual_end_time": _dt(meeting.actual_end_time),
            "is_live": meeting.is_live,
            "started_manually": meeting.started_manually,
            "room_link": meeting.room_link,
            "room_id": meeting.room_id,
            "created_by": str(meeting.created_by),
            "created_at": _dt(meeting.created_at),
            "attendees": [
                {
                    "user_id": str(a.user_id),
                    "joined_at": _dt(a.joined_at),
                    "left_at": _dt(a.left_at),
                    "duration_minutes": a.duration_minutes,
                }
                for a in meeting.attendees
            ],
        }

    def _meeting_from_dict(self, data: dict[str, Any]) -> Meeting:
        return Meeting(
            id=UUID(data["id"]),
            title=data["title"],
            description=data.get("description"),
            scheduled_at=_parse_dt(data["scheduled_at"]),
            duration_minutes=data["duration_minutes"],
            status=MeetingStatus(data["status"]),
            actual_start_time=_parse_dt(data.get("actual_start_time")),
            actual_end_time=_parse_dt(data.get("actual_end_time")),
            is_live=data.get("is_live", False),
            started_manually=data.get("started_manually", False),
            room_link=data.get("room_link"),
            room_id=data.get("room_id"),
            created_by=UUID(data["created_by"]),
            created_at=_parse_dt(data["created_at"]),
            attendees=[
                Attendee(
                    user_id=UUID(a["user_id"]),
                    joined_at=_parse_dt(a["joined_at"]),
                    left_at=_parse_dt(a.get("left_at")),
                    duration_minutes=a.get("duration_minutes"),
                )
                for a in data.get("attendees", [])
            ],
        )

    def _message_to_dict(self, message: ChatMessage) -> dict[str, Any]:
        return {
            "id": str(message.id),
            "sender_id": str(message.sender_id),
            "content": message.content,
            "type": message.type.value,
            "attachments": [
                {
                    "filename": a.filename,
                    "url": a.url,
                    "size": a.size,
                    "mime_type": a.mime_type,
                }
                for a in message.attachments
            ],
            "timestamp": _dt(message.timestamp),
            "edited": message.edited,
            "edited_at": _dt(message.edited_at),
        }

    def _message_from_dict(self, data: dict[str, Any]) -> ChatMessage:
        return ChatMessage(
            id=UUID(data["id"]),
            sender_id=UUID(data["sender_id"]),
            content=data["content"],
            type=MessageType(data["type"]),
            attachments=[Attachment(**a) for a in data.get("attachments", [])],
            timestamp=_parse_dt(data["timestamp"]),
            edited=data.get("edited", False),
            edited_at=_parse_dt(data.get("edited_at")),
        )
