"""Activity log domain entity and action constants."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

# --- Activity Action Constants ---
# Format: {entity_type}.{action}


class Actions:
    """Activity action constants using dot-notation."""

    # Project actions
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_DELETED = "project.deleted"
    PROJECT_MEMBER_ADDED = "project.member_added"
    PROJECT_MEMBER_REMOVED = "project.member_removed"
    PROJECT_MEMBER_ROLE_CHANGED = "project.member_role_changed"

    # Task actions
    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_DELETED = "task.deleted"
    TASK_ASSIGNED = "task.assigned"
    TASK_STATUS_CHANGED = "task.status_changed"
    TASK_POSITION_CHANGED = "task.position_changed"
    TASK_ARCHIVED = "task.archived"
    TASK_UNARCHIVED = "task.unarchived"
    TASK_WATCHER_ADDED = "task.watcher_added"
    TASK_WATCHER_REMOVED = "task.watcher_removed"

    # Comment actions
    COMMENT_CREATED = "comment.created"
    COMMENT_UPDATED = "comment.updated"
    COMMENT_DELETED = "comment.deleted"
    COMMENT_REACTION_ADDED = "comment.reaction_added"
    COMMENT_REACTION_REMOVED = "comment.reaction_removed"


class EntityTypes:
    PROJECT = "project"
    MEMBER = "member"
    TASK = "task"
    COMMENT = "comment"


@dataclass(frozen=True)
class RequestContext:
    """Request metadata recorded alongside an activity entry."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class ActivityLog:
    """Domain entity for an activity log entry."""

    project_id: UUID
    actor_id: UUID
    action: str
    entity_type: str
    entity_id: UUID
    id: UUID = field(default_factory=uuid4)
    changes: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
