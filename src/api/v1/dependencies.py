"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.meeting_service import MeetingService
from domain.services.study_group_service import StudyGroupService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_study_group_service() -> StudyGroupService:
    """Get Study Group service instance."""
    return StudyGroupService(
        get_uow_factory(),
        max_attempts=settings.optimistic_retry_attempts,
        access_code_attempts=settings.access_code_attempts,
    )


@lru_cache
def get_meeting_service() -> MeetingService:
    """Get Meeting service instance."""
    return MeetingService(
        get_uow_factory(),
        max_attempts=settings.optimistic_retry_attempts,
        default_duration_minutes=settings.default_meeting_duration_minutes,
    )
