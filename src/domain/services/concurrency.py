"""Optimistic-concurrency retry loop around the StudyGroup aggregate."""

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from uuid import UUID

import structlog

from core.clock import Clock, utc_now
from core.exceptions import ConcurrencyConflictError, GroupNotFoundError
from domain.entities.study_group import StudyGroup
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

DEFAULT_MAX_ATTEMPTS = 5

Mutation = Callable[[StudyGroup, datetime], StudyGroup]


class AggregateService:
    """Base for services that mutate a StudyGroup aggregate.

    Every mutation runs as load -> apply -> compare-and-swap on ``version``.
    When another writer wins the swap the aggregate is reloaded and the
    same mutation is applied again to the fresh copy, so it must be a pure
    function of the loaded group and ``now``.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._max_attempts = max_attempts

    async def _load(self, group_id: UUID) -> StudyGroup:
        async with self._uow_factory() as uow:
            group = await uow.study_groups.get(group_id)
            if not group:
                raise GroupNotFoundError(str(group_id))
            return group

    async def _mutate(self, group_id: UUID, mutation: Mutation) -> StudyGroup:
        """Apply ``mutation`` and persist it, retrying on version conflicts.

        A mutation that returns the loaded group unchanged is not written.

        Raises:
            GroupNotFoundError: If the group does not exist.
            ConcurrencyConflictError: If every attempt lost the swap.
        """
        for attempt in range(1, self._max_attempts + 1):
            async with self._uow_factory() as uow:
                group = await uow.study_groups.get(group_id)
                if not group:
                    raise GroupNotFoundError(str(group_id))

                now = self._clock()
                updated = mutation(group, now)
                if updated is group:
                    return group

                updated = replace(updated, updated_at=now)
                if await uow.study_groups.compare_and_swap(updated, group.version):
                    await uow.commit()
                    return replace(updated, version=group.version + 1)

                await uow.rollback()
                logger.info(
                    "aggregate_conflict",
                    group_id=str(group_id),
                    attempt=attempt,
                    expected_version=group.version,
                )

        logger.warning(
            "aggregate_conflict_exhausted",
            group_id=str(group_id),
            attempts=self._max_attempts,
        )
        raise ConcurrencyConflictError(str(group_id), self._max_attempts)
