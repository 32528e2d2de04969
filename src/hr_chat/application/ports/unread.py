from __future__ import annotations

from typing import Protocol


class UnreadStore(Protocol):
    async def increment(self, user_id: int, room_key: str) -> int: ...

    async def clear(self, user_id: int, room_key: str) -> None: ...

    async def counts(self, user_id: int) -> dict[str, int]: ...
