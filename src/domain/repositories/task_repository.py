"""Task repository protocol."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.task import Task, TaskPriority, TaskStatus


@dataclass
class TaskFilters:
    """Filters for task listing. ``project_ids`` scopes the query."""

    project_ids: list[UUID] = field(default_factory=list)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    created_by: UUID | None = None
    labels: list[str] = field(default_factory=list)
    due_from: datetime | None = None
    due_to: datetime | None = None
    search: str | None = None
    include_archived: bool = False


class ITaskRepository(Protocol):
    """Repository interface for Task entities."""

    async def get(self, id: UUID) -> Task | None:
        """Get a task by ID."""
        ...

    async def create(self, task: Task) -> Task:
        """Create a new task."""
        ...

    async def update(self, task: Task) -> Task:
        """Update an existing task."""
        ...

    async def update_positions(self, tasks: list[Task]) -> None:
        """Write the position of several tasks."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a task (comments cascade)."""
        ...

    async def get_max_position(self, project_id: UUID) -> int | None:
        """Highest position across all statuses in the project, None if empty."""
        ...

    async def find(
        self, filters: TaskFilters, offset: int = 0, limit: int = 20
    ) -> tuple[list[Task], int]:
        """Filtered, paginated tasks sorted by position. Returns (page, total)."""
        ...

    async def list_for_project(
        self,
        project_id: UUID,
        status: TaskStatus | None = None,
        include_archived: bool = False,
    ) -> list[Task]:
        """Board view: tasks of a project sorted by position."""
        ...

    async def count_by_status(self, project_id: UUID) -> dict[str, int]:
        """Non-archived task counts per status."""
        ...
