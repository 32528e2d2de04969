"""Room keys.

A room is either a persisted group (``group:<uuid>``) or a virtual
private pair (``private:<low>-<high>``). Pair keys are built from the
two user ids in ascending order so both parties resolve the same room
no matter who opens it.
"""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from hr_chat.domain.value_objects.enums import RoomKind


@dataclass(frozen=True, slots=True)
class RoomKey:
    kind: RoomKind
    group_id: UUID | None = None
    user_ids: tuple[int, int] | None = None

    @classmethod
    def group(cls, group_id: UUID) -> RoomKey:
        return cls(kind=RoomKind.GROUP, group_id=group_id)

    @classmethod
    def private(cls, user_a: int, user_b: int) -> RoomKey:
        if user_a == user_b:
            raise ValueError("A private room needs two distinct users")
        low, high = sorted((int(user_a), int(user_b)))
        return cls(kind=RoomKind.PRIVATE, user_ids=(low, high))

    @classmethod
    def parse(cls, raw: str) -> RoomKey:
        kind, _, rest = raw.partition(":")
        if kind == RoomKind.GROUP:
            return cls.group(UUID(rest))
        if kind == RoomKind.PRIVATE:
            low, sep, high = rest.partition("-")
            if not sep:
                raise ValueError(f"Malformed private room key: {raw!r}")
            return cls.private(int(low), int(high))
        raise ValueError(f"Unknown room kind in {raw!r}")

    @property
    def is_group(self) -> bool:
        return self.kind == RoomKind.GROUP

    @property
    def is_private(self) -> bool:
        return self.kind == RoomKind.PRIVATE

    def counterpart(self, user_id: int) -> int:
        """Return the other participant of a private room."""
        if self.user_ids is None or user_id not in self.user_ids:
            raise ValueError(f"User {user_id} is not part of {self}")
        low, high = self.user_ids
        return high if user_id == low else low

    def __str__(self) -> str:
        if self.kind == RoomKind.GROUP:
            return f"group:{self.group_id}"
        low, high = self.user_ids  # type: ignore[misc]
        return f"private:{low}-{high}"
