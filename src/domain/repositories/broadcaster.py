"""Real-time broadcast protocol and event names."""

from typing import Any, Iterable, Protocol
from uuid import UUID


class RealtimeEvents:
    """Server-to-client event names."""

    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    MEMBER_ROLE_CHANGED = "member_role_changed"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_MOVED = "task_moved"
    TASK_DELETED = "task_deleted"
    COMMENT_CREATED = "comment_created"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    COMMENT_REACTION = "comment_reaction"


class IRealtimeBroadcaster(Protocol):
    """Publish-subscribe channel keyed by project id and user id."""

    def publish(
        self,
        event: str,
        data: dict[str, Any],
        project_id: UUID | None = None,
        user_ids: Iterable[UUID] = (),
    ) -> None:
        """Schedule delivery of an event. Never blocks, never raises."""
        ...

    def evict(self, project_id: UUID, user_ids: Iterable[UUID] | None = None) -> None:
        """Stop delivering a project's events to some users, or to everyone.

        Runs after already scheduled events have gone out.
        """
        ...
