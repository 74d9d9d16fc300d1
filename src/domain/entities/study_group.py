"""Study group aggregate root and membership entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from core.clock import utc_now
from domain.entities.meeting import Meeting
from domain.entities.message import ChatMessage

MIN_MEMBERS = 2
MAX_MEMBERS = 100
DEFAULT_MAX_MEMBERS = 50


class MemberRole(str, Enum):
    """Role within a study group."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


_ROLE_RANK = {
    MemberRole.MEMBER: 10,
    MemberRole.MODERATOR: 20,
    MemberRole.ADMIN: 30,
}


def has_permission(user_role: MemberRole, required_role: MemberRole) -> bool:
    """Check if a member role meets the required permission level."""
    return _ROLE_RANK[user_role] >= _ROLE_RANK[required_role]


class GroupStatus(str, Enum):
    """Lifecycle of the group itself."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


@dataclass
class Member:
    """A user's membership in a study group."""

    user_id: UUID
    role: MemberRole = MemberRole.MEMBER
    joined_at: datetime = field(default_factory=utc_now)


@dataclass
class StudyGroup:
    """Aggregate root: members, meetings and chat log of one study group.

    ``version`` is bumped by the store on every successful compare-and-swap
    and is the only thing concurrent writers are checked against.
    """

    name: str
    subject: str
    creator_id: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    is_public: bool = True
    access_code: str | None = None
    max_members: int = DEFAULT_MAX_MEMBERS
    members: list[Member] = field(default_factory=list)
    meetings: list[Meeting] = field(default_factory=list)
    messages: list[ChatMessage] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    status: GroupStatus = GroupStatus.ACTIVE
    version: int = 1
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def member_count(self) -> int:
        return len(self.members)

    def find_meeting(self, meeting_id: UUID) -> Meeting | None:
        return next((m for m in self.meetings if m.id == meeting_id), None)
