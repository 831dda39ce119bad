"""Activity log repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.activity import ActivityLog


class IActivityRepository(Protocol):
    """Repository interface for ActivityLog entities (append-only)."""

    async def create(self, activity: ActivityLog) -> ActivityLog:
        """Create a new activity log entry."""
        ...

    async def list_for_project(
        self,
        project_id: UUID,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        """Activity of a project, newest first. Returns (page, total)."""
        ...

    async def list_for_entity(
        self,
        entity_type: str,
        entity_id: UUID,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """Activity of a specific entity, newest first."""
        ...
