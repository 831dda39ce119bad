"""User domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

ADMIN_ROLE = "admin"
MEMBER_ROLE = "member"


@dataclass
class User:
    """Domain entity for a registered user."""

    email: str
    name: str
    password_hash: str = ""
    id: UUID = field(default_factory=uuid4)
    avatar_url: str | None = None
    roles: list[str] = field(default_factory=lambda: [MEMBER_ROLE])
    is_active: bool = True
    last_login_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Normalize email and keep timestamps ordered."""
        self.email = self.email.strip().lower()
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = datetime.utcnow()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = datetime.utcnow()

    def record_login(self) -> None:
        self.last_login_at = datetime.utcnow()

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
