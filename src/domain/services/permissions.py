"""Actor checks applied by services when the caller identifies an actor."""

from uuid import UUID

from core.exceptions import InsufficientPermissionsError, NotAGroupMemberError
from domain.entities.study_group import MemberRole, StudyGroup, has_permission
from domain.services.membership import get_role


def require_member(group: StudyGroup, user_id: UUID) -> MemberRole:
    role = get_role(group, user_id)
    if role is None:
        raise NotAGroupMemberError(str(group.id))
    return role


def require_role(group: StudyGroup, user_id: UUID, required: MemberRole) -> None:
    role = require_member(group, user_id)
    if not has_permission(role, required):
        raise InsufficientPermissionsError(required.value)


def require_creator_or_admin(group: StudyGroup, user_id: UUID) -> None:
    """Creator or admin members only."""
    if user_id == group.creator_id:
        return
    if get_role(group, user_id) == MemberRole.ADMIN:
        return
    raise InsufficientPermissionsError("admin")


def require_creator(group: StudyGroup, user_id: UUID) -> None:
    if user_id != group.creator_id:
        raise InsufficientPermissionsError("creator")
