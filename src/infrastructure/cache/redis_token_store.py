"""Redis-backed refresh-token store."""

import logging
from uuid import UUID

import orjson
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class RedisTokenStore:
    """Keeps live refresh-token ids in Redis with a TTL.

    Keys: ``refresh_token:{user_id}:{jti}``. Revoking all tokens of a user
    scans that user's key prefix.
    """

    KEY_PREFIX = "refresh_token"

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    def _key(self, user_id: UUID, jti: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}:{jti}"

    async def save(self, user_id: UUID, jti: str, ttl_seconds: int) -> None:
        value = orjson.dumps({"user_id": str(user_id), "jti": jti})
        await self._redis.set(self._key(user_id, jti), value, ex=ttl_seconds)

    async def exists(self, user_id: UUID, jti: str) -> bool:
        return bool(await self._redis.exists(self._key(user_id, jti)))

    async def revoke(self, user_id: UUID, jti: str) -> None:
        await self._redis.delete(self._key(user_id, jti))

    async def revoke_all(self, user_id: UUID) -> int:
        keys = [key async for key in self._redis.scan_iter(match=f"{self.KEY_PREFIX}:{user_id}:*")]
        if not keys:
            return 0
        removed = await self._redis.delete(*keys)
        logger.info("Revoked %d refresh tokens for user %s", removed, user_id)
        return int(removed)
