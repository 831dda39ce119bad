"""Authentication provider protocol."""

from dataclasses import dataclass, field
from typing import Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """Represents a user extracted from an access token."""

    id: UUID
    email: str
    name: Optional[str] = None
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


@dataclass
class RefreshClaims:
    """Claims carried by a verified refresh token."""

    user_id: UUID
    jti: str


@dataclass
class TokenPair:
    """Access + refresh token returned on login/refresh."""

    access_token: str
    refresh_token: str
    refresh_jti: str
    expires_in: int
    token_type: str = "bearer"


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate an access token.

        Args:
            token: The bearer token to validate

        Returns:
            TokenUser if valid, None if invalid
        """
        ...

    def create_token(self, user: TokenUser) -> str:
        """Create an access token for a user."""
        ...

    def create_token_pair(self, user: TokenUser) -> TokenPair:
        """Create an access token and a refresh token for a user."""
        ...

    def decode_refresh_token(self, token: str) -> Optional[RefreshClaims]:
        """Verify a refresh token and return its claims, None if invalid."""
        ...

    @property
    def refresh_ttl_seconds(self) -> int:
        """Lifetime of a refresh token, used as the token-store TTL."""
        ...
