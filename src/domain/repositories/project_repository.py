"""Project repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.project import Project, ProjectStatus


class IProjectRepository(Protocol):
    """Repository interface for Project aggregates (members included)."""

    async def get(self, id: UUID) -> Project | None:
        """Get a project with its members."""
        ...

    async def create(self, project: Project) -> Project:
        """Create a project and its member entries."""
        ...

    async def update(self, project: Project) -> Project:
        """Persist project fields and synchronize its member list."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a project (tasks and comments cascade)."""
        ...

    async def list_for_user(
        self,
        user_id: UUID,
        status: ProjectStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """Projects the user owns or belongs to, newest activity first."""
        ...

    async def get_ids_for_user(self, user_id: UUID) -> list[UUID]:
        """IDs of every project the user owns or belongs to."""
        ...
