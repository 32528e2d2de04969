"""Unread markers kept in Redis so they survive a server restart.

One hash per recipient: ``unread:<user_id>`` maps room key -> count.
"""
from __future__ import annotations

import redis.asyncio as aioredis

KEY_PREFIX = "unread"


class RedisUnreadStore:
    """Implements application.ports.unread.UnreadStore."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    @staticmethod
    def _key(user_id: int) -> str:
        return f"{KEY_PREFIX}:{user_id}"

    async def increment(self, user_id: int, room_key: str) -> int:
        return int(await self._redis.hincrby(self._key(user_id), room_key, 1))

    async def clear(self, user_id: int, room_key: str) -> None:
        await self._redis.hdel(self._key(user_id), room_key)

    async def counts(self, user_id: int) -> dict[str, int]:
        raw = await self._redis.hgetall(self._key(user_id))
        return {str(k): int(v) for k, v in raw.items() if int(v) > 0}
