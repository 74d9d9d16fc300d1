"""SQLAlchemy Unit of Work implementation."""

from types import TracebackType
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_study_group_repo import (
    SQLAlchemyStudyGroupRepository,
)


class SQLAlchemyUnitOfWork:
    """One session per ``async with`` block.

    A study group mutation is a single compare-and-swap, so each attempt of
    the retry loop opens its own unit and nothing leaks between attempts.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._study_groups: Optional[SQLAlchemyStudyGroupRepository] = None

    @property
    def study_groups(self) -> SQLAlchemyStudyGroupRepository:
        if self._study_groups is None:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._study_groups

    async def commit(self) -> None:
        if self._session is not None:
            await self._session.commit()

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._session = self._session_factory()
        self._study_groups = SQLAlchemyStudyGroupRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Roll back on error, then release the session."""
        session, self._session, self._study_groups = self._session, None, None
        if session is None:
            return
        try:
            if exc_type is not None:
                await session.rollback()
        finally:
            await session.close()
