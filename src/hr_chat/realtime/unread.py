from __future__ import annotations


class InMemoryUnreadStore:
    """Process-local unread markers. Lost on restart."""

    def __init__(self) -> None:
        self._counts: dict[int, dict[str, int]] = {}

    async def increment(self, user_id: int, room_key: str) -> int:
        rooms = self._counts.setdefault(user_id, {})
        rooms[room_key] = rooms.get(room_key, 0) + 1
        return rooms[room_key]

    async def clear(self, user_id: int, room_key: str) -> None:
        rooms = self._counts.get(user_id)
        if rooms is not None:
            rooms.pop(room_key, None)

    async def counts(self, user_id: int) -> dict[str, int]:
        return dict(self._counts.get(user_id, {}))
