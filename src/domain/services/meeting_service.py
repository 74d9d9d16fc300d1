"""Meeting service: schedule, start, end, attend and reconcile meetings."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from core.clock import Clock, ensure_utc, utc_now
from core.exceptions import AppException
from domain.entities.meeting import DEFAULT_DURATION_MINUTES, Meeting, MeetingStatusReport
from domain.entities.study_group import GroupStatus, StudyGroup
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import attendance, meeting_state
from domain.services.concurrency import DEFAULT_MAX_ATTEMPTS, AggregateService
from domain.services.permissions import (
    require_creator,
    require_creator_or_admin,
    require_member,
)

logger = structlog.get_logger()


class MeetingService(AggregateService):
    """Service layer for the meetings of a study group.

    Every call that takes an ``actor_id`` applies the group's authorization
    policy to that actor. Leaving it out skips the policy, which is what
    trusted internal callers (the status sweep, tests) do.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
    ) -> None:
        super().__init__(uow_factory, clock=clock, max_attempts=max_attempts)
        self._default_duration = default_duration_minutes

    async def get_meeting(self, group_id: UUID, meeting_id: UUID) -> Meeting:
        group = await self._load(group_id)
        return attendance.require_meeting(group, meeting_id)

    async def schedule_meeting(
        self,
        group_id: UUID,
        title: str,
        scheduled_at: datetime,
        creator_id: UUID,
        description: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """Schedule a meeting. With an actor, requires the creator or an admin."""
        meeting_id = uuid4()

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_creator_or_admin(group, actor_id)
            updated, _ = meeting_state.schedule_meeting(
                group,
                title=title,
                description=description,
                scheduled_at=scheduled_at,
                duration_minutes=duration_minutes or self._default_duration,
                created_by=creator_id,
                meeting_id=meeting_id,
                now=now,
            )
            return updated

        group = await self._mutate(group_id, mutation)
        logger.info(
            "meeting_scheduled",
            group_id=str(group_id),
            meeting_id=str(meeting_id),
            scheduled_at=ensure_utc(scheduled_at).isoformat(),
        )
        return attendance.require_meeting(group, meeting_id)

    async def start_instant_meeting(
        self,
        group_id: UUID,
        creator_id: UUID,
        title: Optional[str] = None,
        description: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        room_link: Optional[str] = None,
        room_id: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """Schedule a meeting for now and start it in the same update."""
        meeting_id = uuid4()

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_creator_or_admin(group, actor_id)
            updated, _ = meeting_state.schedule_meeting(
                group,
                title=title or f"{group.name} - Instant Meeting",
                description=description or "Instant study group meeting",
                scheduled_at=now,
                duration_minutes=duration_minutes or self._default_duration,
                created_by=creator_id,
                meeting_id=meeting_id,
                now=now,
            )
            return meeting_state.start_meeting(
                updated, meeting_id, room_link=room_link, room_id=room_id, now=now
            )

        group = await self._mutate(group_id, mutation)
        logger.info("instant_meeting_started", group_id=str(group_id), meeting_id=str(meeting_id))
        return attendance.require_meeting(group, meeting_id)

    async def start_meeting(
        self,
        group_id: UUID,
        meeting_id: UUID,
        room_link: Optional[str] = None,
        room_id: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """Start a meeting by hand and store its room link."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_creator_or_admin(group, actor_id)
            return meeting_state.start_meeting(
                group, meeting_id, room_link=room_link, room_id=room_id, now=now
            )

        group = await self._mutate(group_id, mutation)
        logger.info("meeting_started", group_id=str(group_id), meeting_id=str(meeting_id))
        return attendance.require_meeting(group, meeting_id)

    async def end_meeting(
        self,
        group_id: UUID,
        meeting_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """End a meeting and close all open attendance. With an actor, creator only."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_creator(group, actor_id)
            return meeting_state.end_meeting(group, meeting_id, now=now)

        group = await self._mutate(group_id, mutation)
        logger.info("meeting_ended", group_id=str(group_id), meeting_id=str(meeting_id))
        return attendance.require_meeting(group, meeting_id)

    async def cancel_meeting(
        self,
        group_id: UUID,
        meeting_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_creator_or_admin(group, actor_id)
            return meeting_state.cancel_meeting(group, meeting_id)

        group = await self._mutate(group_id, mutation)
        logger.info("meeting_cancelled", group_id=str(group_id), meeting_id=str(meeting_id))
        return attendance.require_meeting(group, meeting_id)

    async def join_meeting(
        self,
        group_id: UUID,
        meeting_id: UUID,
        user_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """Record that a user joined. Joining twice is a no-op."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_member(group, actor_id)
            return attendance.join_meeting(group, meeting_id, user_id, now=now)

        group = await self._mutate(group_id, mutation)
        return attendance.require_meeting(group, meeting_id)

    async def leave_meeting(
        self,
        group_id: UUID,
        meeting_id: UUID,
        user_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> Meeting:
        """Record that a user left. Leaving without joining is a no-op."""

        def mutation(group: StudyGroup, now: datetime) -> StudyGroup:
            if actor_id is not None:
                require_member(group, actor_id)
            return attendance.leave_meeting(group, meeting_id, user_id, now=now)

        group = await self._mutate(group_id, mutation)
        return attendance.require_meeting(group, meeting_id)

    async def get_meeting_status(
        self,
        group_id: UUID,
        meeting_id: UUID,
        now: Optional[datetime] = None,
    ) -> MeetingStatusReport:
        """Derive a meeting's status without writing anything."""
        group = await self._load(group_id)
        meeting = attendance.require_meeting(group, meeting_id)
        at = ensure_utc(now) if now else self._clock()
        return meeting_state.derive_status(meeting, at)

    async def update_meeting_statuses(
        self, group_id: UUID, now: Optional[datetime] = None
    ) -> StudyGroup:
        """Persist clock-driven transitions of every meeting in the group."""
        at = ensure_utc(now) if now else None
        return await self._mutate(
            group_id,
            lambda g, clock_now: meeting_state.update_meeting_statuses(g, at or clock_now),
        )

    async def sweep_meeting_statuses(self, now: Optional[datetime] = None) -> int:
        """Reconcile meeting statuses across all active groups.

        A group that fails to reconcile is logged and skipped; the rest
        are still swept.

        Returns:
            Number of groups whose meetings changed.
        """
        at = ensure_utc(now) if now else self._clock()
        async with self._uow_factory() as uow:
            groups = await uow.study_groups.list_groups(GroupStatus.ACTIVE)

        updated = 0
        for group in groups:
            if meeting_state.update_meeting_statuses(group, at) is group:
                continue
            try:
                await self.update_meeting_statuses(group.id, at)
            except AppException as exc:
                logger.warning(
                    "meeting_sweep_group_failed",
                    group_id=str(group.id),
                    error_code=exc.error_code,
                )
                continue
            updated += 1

        if updated:
            logger.info("meeting_statuses_swept", groups_updated=updated)
        return updated
