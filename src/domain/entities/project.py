"""Project domain entities and the membership/permission model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4


class ProjectRole(StrEnum):
    """Roles a user can hold inside a project."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class Capability(StrEnum):
    """Named permissions checked against a member's role."""

    EDIT = "can_edit"
    DELETE = "can_delete"
    INVITE = "can_invite"
    MANAGE_TASKS = "can_manage_tasks"


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


# Fixed role -> capability table. Swap this mapping (or pass another one to
# has_permission) to make capabilities configurable per tenant.
ROLE_CAPABILITIES: dict[ProjectRole, frozenset[Capability]] = {
    ProjectRole.OWNER: frozenset(
        {Capability.EDIT, Capability.DELETE, Capability.INVITE, Capability.MANAGE_TASKS}
    ),
    ProjectRole.ADMIN: frozenset({Capability.EDIT, Capability.INVITE, Capability.MANAGE_TASKS}),
    ProjectRole.MEMBER: frozenset({Capability.MANAGE_TASKS}),
    ProjectRole.VIEWER: frozenset(),
}


def capabilities_for(
    role: ProjectRole | None,
    table: dict[ProjectRole, frozenset[Capability]] = ROLE_CAPABILITIES,
) -> frozenset[Capability]:
    """Return the capability set of a role. Unknown or missing role gets none."""
    if role is None:
        return frozenset()
    return table.get(role, frozenset())


def has_permission(
    role: ProjectRole | None,
    capability: Capability,
    table: dict[ProjectRole, frozenset[Capability]] = ROLE_CAPABILITIES,
) -> bool:
    """Check whether a role grants a capability (fail-closed)."""
    return capability in capabilities_for(role, table)


@dataclass
class ProjectSettings:
    """Per-project settings block."""

    is_public: bool = False
    allow_member_invites: bool = False
    default_task_status: str = "pending"
    task_labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_public": self.is_public,
            "allow_member_invites": self.allow_member_invites,
            "default_task_status": self.default_task_status,
            "task_labels": list(self.task_labels),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProjectSettings":
        data = data or {}
        return cls(
            is_public=bool(data.get("is_public", False)),
            allow_member_invites=bool(data.get("allow_member_invites", False)),
            default_task_status=data.get("default_task_status") or "pending",
            task_labels=list(data.get("task_labels") or []),
        )


@dataclass
class ProjectMember:
    """Value object: a (user, role) pairing owned by a Project."""

    user_id: UUID
    role: ProjectRole = ProjectRole.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Project:
    """Domain entity for a Project (aggregate root owning its members)."""

    name: str
    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    color: str = "#3B82F6"
    status: ProjectStatus = ProjectStatus.ACTIVE
    members: list[ProjectMember] = field(default_factory=list)
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    # --- Membership queries ---

    def find_member(self, user_id: UUID) -> ProjectMember | None:
        """Return the explicit member entry for a user, if any."""
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def is_member(self, user_id: UUID) -> bool:
        """The owner is always a member, whether listed or not."""
        return user_id == self.owner_id or self.find_member(user_id) is not None

    def get_member_role(self, user_id: UUID) -> ProjectRole | None:
        if user_id == self.owner_id:
            return ProjectRole.OWNER
        member = self.find_member(user_id)
        return member.role if member else None

    def has_permission(self, user_id: UUID, capability: Capability) -> bool:
        return has_permission(self.get_member_role(user_id), capability)

    # --- Membership mutations ---

    def add_member(self, user_id: UUID, role: ProjectRole) -> ProjectMember:
        """Upsert a member: overwrite the role if present, else append."""
        existing = self.find_member(user_id)
        if existing:
            existing.role = role
            return existing
        member = ProjectMember(user_id=user_id, role=role)
        self.members.append(member)
        return member

    def remove_member(self, user_id: UUID) -> bool:
        """Remove a member entry. Returns False (no-op) when absent."""
        existing = self.find_member(user_id)
        if not existing:
            return False
        self.members.remove(existing)
        return True

    def update_member_role(self, user_id: UUID, role: ProjectRole) -> bool:
        """Replace a member's role in place. Returns False (no-op) when absent."""
        existing = self.find_member(user_id)
        if not existing:
            return False
        existing.role = role
        return True

    def member_ids(self) -> set[UUID]:
        """All user ids with access, owner included."""
        return {self.owner_id, *(m.user_id for m in self.members)}

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
