"""Comment repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.comment import Comment


class ICommentRepository(Protocol):
    """Repository interface for Comment entities."""

    async def get(self, id: UUID) -> Comment | None:
        """Get a comment by ID (deleted comments included)."""
        ...

    async def create(self, comment: Comment) -> Comment:
        """Create a new comment."""
        ...

    async def update(self, comment: Comment) -> Comment:
        """Update an existing comment."""
        ...

    async def list_for_task(
        self, task_id: UUID, offset: int = 0, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Top-level, non-deleted comments of a task, oldest first."""
        ...

    async def list_replies(
        self, parent_id: UUID, offset: int = 0, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Non-deleted replies to a comment, oldest first."""
        ...
