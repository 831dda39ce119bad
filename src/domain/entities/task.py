"""Task domain entity and Kanban ordering helpers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Iterable
from uuid import UUID, uuid4


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Subtask:
    """Checklist item inside a task (no identity of its own)."""

    title: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "completed": self.completed}


@dataclass
class Attachment:
    """Metadata of a file attached to a task."""

    filename: str
    url: str
    uploaded_by: UUID
    size: int = 0
    mime_type: str | None = None
    uploaded_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "url": self.url,
            "uploaded_by": str(self.uploaded_by),
            "size": self.size,
            "mime_type": self.mime_type,
            "uploaded_at": self.uploaded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attachment":
        return cls(
            filename=data["filename"],
            url=data["url"],
            uploaded_by=UUID(str(data["uploaded_by"])),
            size=int(data.get("size") or 0),
            mime_type=data.get("mime_type"),
            uploaded_at=datetime.fromisoformat(data["uploaded_at"])
            if data.get("uploaded_at")
            else datetime.utcnow(),
        )


@dataclass
class Task:
    """Domain entity for a Task on a project board."""

    project_id: UUID
    created_by: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: UUID | None = None
    due_date: datetime | None = None
    labels: list[str] = field(default_factory=list)
    estimated_hours: float | None = None
    actual_hours: float | None = None
    position: int = 0
    subtasks: list[Subtask] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    watchers: list[UUID] = field(default_factory=list)
    is_archived: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def set_status(self, status: TaskStatus) -> None:
        """Change status; any transition is allowed. Tracks completed_at."""
        if status == self.status:
            return
        self.status = status
        self.completed_at = datetime.utcnow() if status == TaskStatus.COMPLETED else None
        self.updated_at = datetime.utcnow()

    def move(self, status: TaskStatus, position: int) -> None:
        """Set status and position together. Position is stored verbatim."""
        self.set_status(status)
        self.position = position
        self.updated_at = datetime.utcnow()

    def archive(self) -> None:
        self.is_archived = True
        self.updated_at = datetime.utcnow()

    def unarchive(self) -> None:
        self.is_archived = False
        self.updated_at = datetime.utcnow()

    def is_watched_by(self, user_id: UUID) -> bool:
        return user_id in self.watchers

    def add_watcher(self, user_id: UUID) -> bool:
        if self.is_watched_by(user_id):
            return False
        self.watchers.append(user_id)
        return True

    def remove_watcher(self, user_id: UUID) -> bool:
        if not self.is_watched_by(user_id):
            return False
        self.watchers.remove(user_id)
        return True

    @property
    def subtask_progress(self) -> tuple[int, int]:
        """(completed, total) subtasks."""
        return sum(1 for s in self.subtasks if s.completed), len(self.subtasks)


def next_position(current_max: int | None) -> int:
    """Position for a new task: one past the project-wide max, 0 when empty."""
    return 0 if current_max is None else current_max + 1


def renormalize_column(column: Iterable[Task], moved: Task, index: int) -> list[Task]:
    """Insert ``moved`` at ``index`` in a status column and renumber it 0..n-1.

    ``column`` holds the other tasks of the destination status in board
    order. Returns every task whose position changed (``moved`` included).
    """
    ordered = [t for t in column if t.id != moved.id]
    index = max(0, min(index, len(ordered)))
    ordered.insert(index, moved)

    changed: list[Task] = []
    for pos, task in enumerate(ordered):
        if task.position != pos or task is moved:
            task.position = pos
            changed.append(task)
    return changed
