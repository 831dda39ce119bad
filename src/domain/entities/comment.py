"""Comment domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Comment:
    """Domain entity for a task comment (single-level threading)."""

    task_id: UUID
    author_id: UUID
    content: str
    id: UUID = field(default_factory=uuid4)
    parent_id: UUID | None = None
    mentions: list[UUID] = field(default_factory=list)
    # emoji -> ids of users who reacted with it
    reactions: dict[str, list[UUID]] = field(default_factory=dict)
    is_edited: bool = False
    edited_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def edit(self, content: str) -> None:
        self.content = content
        self.is_edited = True
        self.edited_at = datetime.utcnow()
        self.updated_at = self.edited_at

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.deleted_at = datetime.utcnow()
        self.updated_at = self.deleted_at

    def add_reaction(self, emoji: str, user_id: UUID) -> bool:
        """Add a reaction. Returns False if the user already reacted with it."""
        reactors = self.reactions.setdefault(emoji, [])
        if user_id in reactors:
            return False
        reactors.append(user_id)
        return True

    def remove_reaction(self, emoji: str, user_id: UUID) -> bool:
        """Remove a reaction. Empty emoji buckets are dropped."""
        reactors = self.reactions.get(emoji)
        if not reactors or user_id not in reactors:
            return False
        reactors.remove(user_id)
        if not reactors:
            del self.reactions[emoji]
        return True
