from __future__ import annotations

from typing import Protocol
from uuid import UUID

from hr_chat.domain.entities.group import Group


class GroupReader(Protocol):
    async def get_by_id(self, group_id: UUID) -> Group | None: ...
