"""Study group service: creation, membership and chat."""

import random
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import structlog

from core.clock import Clock, ensure_utc, utc_now
from core.exceptions import (
    CreatorCannotLeaveError,
    InvalidAccessCodeError,
    PrivateGroupError,
)
from domain.entities.message import Attachment, ChatMessage, MessageType
from domain.entities.study_group import (
    DEFAULT_MAX_MEMBERS,
    GroupStatus,
    MemberRole,
    StudyGroup,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import membership, message_log
from domain.services.access_code import (
    MAX_ACCESS_CODE_ATTEMPTS,
    generate_unique_access_code,
)
from domain.services.concurrency import DEFAULT_MAX_ATTEMPTS, AggregateService
from domain.services.permissions import require_member, require_role

logger = structlog.get_logger()

LIST_LIMIT = 50


def is_visible_to(group: StudyGroup, user_id: UUID) -> bool:
    """Public groups are visible to everyone, private ones to their members."""
    return group.is_public or membership.is_member(group, user_id)


def matches_filters(
    group: StudyGroup, subject: str | None = None, search: str | None = None
) -> bool:
    """Case-insensitive subject match and free-text search over name, description and tags."""
    if subject and subject.lower() not in group.subject.lower():
        return False
    if search:
        needle = search.lower()
        haystack = [group.name, group.description or "", *group.tags]
        if not any(needle in value.lower() for value in haystack):
            return False
    return True


class StudyGroupService(AggregateService):
    """Service layer for study groups, their members and chat log."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        access_code_attempts: int = MAX_ACCESS_CODE_ATTEMPTS,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(uow_factory, clock=clock, max_attempts=max_attempts)
        self._access_code_attempts = access_code_attempts
        self._rng = rng

    # --- Groups ---

    async def create_group(
        self,
        name: str,
        subject: str,
        creator_id: UUID,
        is_public: bool = True,
        max_members: int = DEFAULT_MAX_MEMBERS,
        description: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> StudyGroup:
        """Create a study group with its creator as admin.

        Private groups get an access code that no other group holds.

        Raises:
            InvalidGroupSettingsError: If max_members is out of bounds.
            CodeGenerationExhaustedError: If no unique access code was found.
        """
        membership.validate_max_members(max_members)
        now = self._clock()

        async with self._uow_factory() as uow:
            access_code = None
            if not is_public:
                access_code = await generate_unique_access_code(
                    uow.study_groups.access_code_exists,
                    rng=self._rng,
                    max_attempts=self._access_code_attempts,
                )

            group = StudyGroup(
                name=name,
                subject=subject,
                description=description,
                creator_id=creator_id,
                is_public=is_public,
                access_code=access_code,
                max_members=max_members,
                tags=list(tags or []),
                created_at=now,
                updated_at=now,
            )
            group = membership.add_member(group, creator_id, MemberRole.ADMIN, now=now)

            created = await uow.study_groups.create(group)
            await uow.commit()

        logger.info(
            "study_group_created",
            group_id=str(created.id),
            creator_id=str(creator_id),
            is_public=is_public,
        )
        return created

    async def get_group(self, group_id: UUID) -> StudyGroup:
        """Get a study group by ID."""
        return await self._load(group_id)

    async def list_groups(
        self,
        user_id: UUID,
        subject: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[StudyGroup]:
        """Active groups that are public or joined by the user, newest first."""
        async with self._uow_factory() as uow:
            groups = await uow.study_groups.list_groups(GroupStatus.ACTIVE)

        visible = [
            g
            for g in groups
            if is_visible_to(g, user_id) and matches_filters(g, subject, search)
        ]
        return visible[:LIST_LIMIT]

    async def list_user_groups(self, user_id: UUID) -> List[StudyGroup]:
        """All groups the user is a member of, newest first."""
        async with self._uow_factory() as uow:
            groups = await uow.study_groups.list_groups(status=None)
        return [g for g in groups if membership.is_member(g, user_id)]

    # --- Membership ---

    async def add_member(
        self,
        group_id: UUID,
        user_id: UUID,
        role: MemberRole = MemberRole.MEMBER,
        actor_id: Optional[UUID] = None,
    ) -> StudyGroup:
        """Add a member under the capacity and uniqueness invariants.

        With an actor, requires a moderator or above.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupFullError: If the group is full.
            AlreadyAGroupMemberError: If the user is already a member.
        """

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_role(group, actor_id, MemberRole.MODERATOR)
            return membership.add_member(group, user_id, role, now=now)

        group = await self._mutate(group_id, mutation)
        logger.info("member_added", group_id=str(group_id), user_id=str(user_id))
        return group

    async def remove_member(
        self,
        group_id: UUID,
        user_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> StudyGroup:
        """Remove a member. Removing a non-member is not an error.

        With an actor, admins may remove others and the creator stays.
        """

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                if actor_id != user_id:
                    require_role(group, actor_id, MemberRole.ADMIN)
                if user_id == group.creator_id:
                    raise CreatorCannotLeaveError()
            return membership.remove_member(group, user_id)

        group = await self._mutate(group_id, mutation)
        logger.info("member_removed", group_id=str(group_id), user_id=str(user_id))
        return group

    async def join_group(self, group_id: UUID, user_id: UUID) -> StudyGroup:
        """Join a public group.

        Raises:
            PrivateGroupError: If the group requires an access code.
        """

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if not group.is_public:
                raise PrivateGroupError(str(group.id))
            return membership.add_member(group, user_id, now=now)

        group = await self._mutate(group_id, mutation)
        logger.info("study_group_joined", group_id=str(group_id), user_id=str(user_id))
        return group

    async def join_by_code(self, access_code: str, user_id: UUID) -> StudyGroup:
        """Join the group holding ``access_code``.

        Raises:
            InvalidAccessCodeError: If no group holds the code.
        """
        code = access_code.strip().upper()
        async with self._uow_factory() as uow:
            target = await uow.study_groups.get_by_access_code(code)
        if not target:
            raise InvalidAccessCodeError()

        group = await self._mutate(
            target.id, lambda g, now: membership.add_member(g, user_id, now=now)
        )
        logger.info("study_group_joined_by_code", group_id=str(group.id), user_id=str(user_id))
        return group

    async def leave_group(self, group_id: UUID, user_id: UUID) -> StudyGroup:
        """Leave a group. The creator cannot leave their own group."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if group.creator_id == user_id:
                raise CreatorCannotLeaveError()
            return membership.remove_member(group, user_id)

        return await self._mutate(group_id, mutation)

    async def change_member_role(
        self,
        group_id: UUID,
        user_id: UUID,
        role: MemberRole,
        actor_id: Optional[UUID] = None,
    ) -> StudyGroup:
        """Change a member's role. With an actor, only admins may do this."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_role(group, actor_id, MemberRole.ADMIN)
            return membership.change_role(group, user_id, role)

        return await self._mutate(group_id, mutation)

    # --- Chat ---

    async def append_message(
        self,
        group_id: UUID,
        sender_id: UUID,
        content: str,
        message_type: MessageType | str = MessageType.TEXT,
        attachments: Sequence[Attachment] = (),
        actor_id: Optional[UUID] = None,
    ) -> StudyGroup:
        """Append a chat message to the group log.

        Raises:
            InvalidMessageError: If the content or type is invalid.
            NotAGroupMemberError: If an actor is given and is not a member.
        """

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_member(group, actor_id)
            message = message_log.build_message(
                sender_id, content, message_type, attachments, now=now
            )
            return message_log.append_message(group, message)

        return await self._mutate(group_id, mutation)

    async def edit_message(
        self,
        group_id: UUID,
        message_id: UUID,
        sender_id: UUID,
        content: str,
        actor_id: Optional[UUID] = None,
    ) -> ChatMessage:
        """Edit a message's content. Only its sender may edit it.

        Raises:
            NotAGroupMemberError: If an actor is given and is no longer a member.
        """

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_member(group, actor_id)
            return message_log.edit_message(group, message_id, sender_id, content, now=now)

        group = await self._mutate(group_id, mutation)
        return next(m for m in group.messages if m.id == message_id)

    async def get_messages(
        self,
        group_id: UUID,
        limit: int = message_log.DEFAULT_PAGE_SIZE,
        before: Optional[datetime] = None,
        actor_id: Optional[UUID] = None,
    ) -> List[ChatMessage]:
        """Read the newest messages, oldest first."""
        group = await self._load(group_id)
        if actor_id is not None:
            require_member(group, actor_id)
        if before is not None:
            before = ensure_utc(before)
        return message_log.recent_messages(group, limit=limit, before=before)
