"""Refresh-token state store protocol."""

from typing import Protocol
from uuid import UUID


class ITokenStore(Protocol):
    """Key-value store holding live refresh-token ids with a TTL."""

    async def save(self, user_id: UUID, jti: str, ttl_seconds: int) -> None:
        """Record a refresh token as live."""
        ...

    async def exists(self, user_id: UUID, jti: str) -> bool:
        """Check whether a refresh token is still live."""
        ...

    async def revoke(self, user_id: UUID, jti: str) -> None:
        """Revoke a single refresh token."""
        ...

    async def revoke_all(self, user_id: UUID) -> int:
        """Revoke every refresh token of a user. Returns how many were removed."""
        ...
