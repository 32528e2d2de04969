from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Group:
    id: UUID
    name: str
    created_by: int
    created_at: datetime
    member_ids: frozenset[int] = field(default_factory=frozenset)

    def has_member(self, user_id: int) -> bool:
        return user_id in self.member_ids
