from __future__ import annotations

import uuid

import pytest

from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.infrastructure.cache.redis_unread import RedisUnreadStore
from hr_chat.realtime.unread import InMemoryUnreadStore
from hr_chat.services.unread_service import summarize


@pytest.mark.asyncio
async def test_in_memory_store_counts_and_clears():
    store = InMemoryUnreadStore()
    assert await store.increment(1, "private:1-2") == 1
    assert await store.increment(1, "private:1-2") == 2

    await store.clear(1, "private:1-2")
    await store.clear(1, "private:1-2")

    assert await store.counts(1) == {}


def test_summary_groups_counts_by_conversation():
    group_id = uuid.uuid4()
    counts = {
        str(RoomKey.private(2, 5)): 3,
        str(RoomKey.group(group_id)): 4,
        "garbage": 9,
        str(RoomKey.private(2, 7)): 0,
    }

    summary = summarize(2, counts)

    assert summary.private == {"5": 3}
    assert summary.groups == {str(group_id): 4}
    assert summary.total == 7


class FakeRedisHashes:
    """The hash commands of redis.asyncio with decode_responses=True."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}

    async def hincrby(self, name: str, key: str, amount: int = 1) -> int:
        bucket = self.hashes.setdefault(name, {})
        value = int(bucket.get(key, "0")) + amount
        bucket[key] = str(value)
        return value

    async def hdel(self, name: str, *keys: str) -> int:
        bucket = self.hashes.get(name, {})
        return sum(1 for key in keys if bucket.pop(key, None) is not None)

    async def hgetall(self, name: str) -> dict[str, str]:
        return dict(self.hashes.get(name, {}))


@pytest.mark.asyncio
async def test_redis_store_keeps_one_hash_per_recipient():
    redis = FakeRedisHashes()
    store = RedisUnreadStore(redis)  # type: ignore[arg-type]

    assert await store.increment(2, "private:1-2") == 1
    assert await store.increment(2, "private:1-2") == 2
    assert await store.increment(3, "private:1-3") == 1

    assert redis.hashes["unread:2"] == {"private:1-2": "2"}
    assert await store.counts(2) == {"private:1-2": 2}
    assert await store.counts(3) == {"private:1-3": 1}


@pytest.mark.asyncio
async def test_redis_store_clear_and_zero_counts():
    redis = FakeRedisHashes()
    store = RedisUnreadStore(redis)  # type: ignore[arg-type]
    group_key = str(RoomKey.group(uuid.uuid4()))
    await store.increment(2, "private:1-2")
    await store.increment(2, group_key)
    redis.hashes["unread:2"]["private:2-9"] = "0"

    await store.clear(2, "private:1-2")
    await store.clear(2, "private:1-2")

    assert await store.counts(2) == {group_key: 1}
    assert await store.counts(99) == {}
