"""Unit tests for RedisTokenStore."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import orjson
import pytest

from infrastructure.cache.redis_token_store import RedisTokenStore


@pytest.fixture
def redis() -> MagicMock:
    client = MagicMock()
    client.set = AsyncMock()
    client.exists = AsyncMock(return_value=1)
    client.delete = AsyncMock(return_value=2)
    return client


@pytest.fixture
def store(redis: MagicMock) -> RedisTokenStore:
    return RedisTokenStore(redis)


def _scan(*keys: str):
    async def _iter(match: str):
        for key in keys:
            yield key

    return _iter


async def test_save_sets_ttl(store: RedisTokenStore, redis: MagicMock):
    user_id = uuid4()

    await store.save(user_id, "abc", ttl_seconds=60)

    key, value = redis.set.call_args.args
    assert key == f"refresh_token:{user_id}:abc"
    assert orjson.loads(value) == {"user_id": str(user_id), "jti": "abc"}
    assert redis.set.call_args.kwargs == {"ex": 60}


async def test_exists(store: RedisTokenStore, redis: MagicMock):
    assert await store.exists(uuid4(), "abc") is True

    redis.exists.return_value = 0
    assert await store.exists(uuid4(), "abc") is False


async def test_revoke_deletes_key(store: RedisTokenStore, redis: MagicMock):
    user_id = uuid4()

    await store.revoke(user_id, "abc")

    redis.delete.assert_awaited_once_with(f"refresh_token:{user_id}:abc")


async def test_revoke_all_scans_user_prefix(store: RedisTokenStore, redis: MagicMock):
    user_id = uuid4()
    keys = [f"refresh_token:{user_id}:a", f"refresh_token:{user_id}:b"]
    redis.scan_iter = MagicMock(side_effect=_scan(*keys))

    removed = await store.revoke_all(user_id)

    assert removed == 2
    redis.scan_iter.assert_called_once_with(match=f"refresh_token:{user_id}:*")
    redis.delete.assert_awaited_once_with(*keys)


async def test_revoke_all_without_tokens(store: RedisTokenStore, redis: MagicMock):
    redis.scan_iter = MagicMock(side_effect=_scan())

    assert await store.revoke_all(uuid4()) == 0
    redis.delete.assert_not_called()
