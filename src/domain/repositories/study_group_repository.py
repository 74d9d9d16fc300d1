"""Study group aggregate repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.study_group import GroupStatus, StudyGroup


class IStudyGroupRepository(Protocol):
    """Repository interface for the StudyGroup aggregate.

    The aggregate is always read and written as a whole. Writes go through
    ``compare_and_swap`` so that two writers holding the same version can
    never both succeed.
    """

    async def get(self, id: UUID) -> StudyGroup | None:
        """Load a study group with its current version."""
        ...

    async def get_by_access_code(self, access_code: str) -> StudyGroup | None:
        """Load the private group holding an access code."""
        ...

    async def access_code_exists(self, access_code: str) -> bool:
        """Check the sparse uniqueness constraint on access codes."""
        ...

    async def list_groups(
        self, status: GroupStatus | None = GroupStatus.ACTIVE
    ) -> list[StudyGroup]:
        """List study groups, newest first."""
        ...

    async def create(self, group: StudyGroup) -> StudyGroup:
        """Insert a new study group."""
        ...

    async def compare_and_swap(self, group: StudyGroup, expected_version: int) -> bool:
        """Persist ``group`` only if the stored version is still ``expected_version``.

        On success the stored version becomes ``expected_version + 1``.

        Returns:
            False if another writer got there first.
        """
        ...
