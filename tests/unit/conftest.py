"""Shared fixtures for unit tests."""

import asyncio
from copy import deepcopy
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.study_group import GroupStatus, Member, MemberRole, StudyGroup


class FakeUnitOfWork:
    """Fake Unit of Work with a mocked study group repository."""

    def __init__(self, study_groups: Any = None) -> None:
        self.study_groups = study_groups if study_groups is not None else AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class InMemoryStudyGroupRepository:
    """Dict-backed repository with real compare-and-swap semantics.

    ``get`` hands out deep copies and yields to the event loop, so two
    concurrent writers both read the same version before either swaps.
    """

    def __init__(self) -> None:
        self.groups: dict[UUID, StudyGroup] = {}
        self.cas_failures = 0
        self.swaps = 0

    def add(self, group: StudyGroup) -> None:
        self.groups[group.id] = deepcopy(group)

    async def get(self, id: UUID) -> StudyGroup | None:
        stored = self.groups.get(id)
        snapshot = deepcopy(stored) if stored else None
        await asyncio.sleep(0)
        return snapshot

    async def get_by_access_code(self, access_code: str) -> StudyGroup | None:
        found = next(
            (g for g in self.groups.values() if g.access_code == access_code), None
        )
        return deepcopy(found) if found else None

    async def access_code_exists(self, access_code: str) -> bool:
        return any(g.access_code == access_code for g in self.groups.values())

    async def list_groups(
        self, status: GroupStatus | None = GroupStatus.ACTIVE
    ) -> list[StudyGroup]:
        groups = sorted(self.groups.values(), key=lambda g: g.created_at, reverse=True)
        return [deepcopy(g) for g in groups if status is None or g.status == status]

    async def create(self, group: StudyGroup) -> StudyGroup:
        self.add(group)
        return deepcopy(group)

    async def compare_and_swap(self, group: StudyGroup, expected_version: int) -> bool:
        current = self.groups.get(group.id)
        if current is None or current.version != expected_version:
            self.cas_failures += 1
            return False
        self.groups[group.id] = replace(deepcopy(group), version=expected_version + 1)
        self.swaps += 1
        return True


class FrozenClock:
    """Manually advanced clock for services."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def repo() -> InMemoryStudyGroupRepository:
    return InMemoryStudyGroupRepository()


@pytest.fixture
def memory_uow_factory(repo: InMemoryStudyGroupRepository) -> Any:
    """A UoW factory whose units share one in-memory store."""
    return lambda: FakeUnitOfWork(repo)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now: datetime) -> FrozenClock:
    return FrozenClock(now)


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def creator_id() -> UUID:
    return uuid4()


@pytest.fixture
def group(creator_id: UUID, now: datetime) -> StudyGroup:
    """A public group holding only its creator, as admin."""
    return StudyGroup(
        name="Linear Algebra",
        subject="Mathematics",
        creator_id=creator_id,
        members=[Member(user_id=creator_id, role=MemberRole.ADMIN, joined_at=now)],
        created_at=now,
        updated_at=now,
    )
