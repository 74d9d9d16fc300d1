"""Membership rules of a study group.

All functions are pure: they return a new ``StudyGroup`` and never touch the
one they were given.
"""

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from core.exceptions import (
    AlreadyAGroupMemberError,
    GroupFullError,
    GroupMemberNotFoundError,
    InvalidGroupSettingsError,
)
from domain.entities.study_group import (
    MAX_MEMBERS,
    MIN_MEMBERS,
    Member,
    MemberRole,
    StudyGroup,
)


def validate_max_members(max_members: int) -> None:
    if not MIN_MEMBERS <= max_members <= MAX_MEMBERS:
        raise InvalidGroupSettingsError(
            f"max_members must be between {MIN_MEMBERS} and {MAX_MEMBERS}",
            details={"max_members": max_members},
        )


def is_member(group: StudyGroup, user_id: UUID) -> bool:
    return any(m.user_id == user_id for m in group.members)


def get_role(group: StudyGroup, user_id: UUID) -> MemberRole | None:
    member = next((m for m in group.members if m.user_id == user_id), None)
    return member.role if member else None


def add_member(
    group: StudyGroup,
    user_id: UUID,
    role: MemberRole = MemberRole.MEMBER,
    *,
    now: datetime,
) -> StudyGroup:
    """Add a member.

    Raises:
        GroupFullError: If the group already holds ``max_members`` members.
        AlreadyAGroupMemberError: If the user is already a member.
    """
    if len(group.members) >= group.max_members:
        raise GroupFullError(group.max_members)
    if is_member(group, user_id):
        raise AlreadyAGroupMemberError(str(user_id))

    member = Member(user_id=user_id, role=role, joined_at=now)
    return replace(group, members=[*group.members, member])


def remove_member(group: StudyGroup, user_id: UUID) -> StudyGroup:
    """Remove every membership entry of a user. Absent users are a no-op."""
    if not is_member(group, user_id):
        return group
    return replace(
        group,
        members=[m for m in group.members if m.user_id != user_id],
    )


def change_role(group: StudyGroup, user_id: UUID, role: MemberRole) -> StudyGroup:
    if not is_member(group, user_id):
        raise GroupMemberNotFoundError(str(user_id))
    if get_role(group, user_id) == role:
        return group
    return replace(
        group,
        members=[
            replace(m, role=role) if m.user_id == user_id else m
            for m in group.members
        ],
    )
