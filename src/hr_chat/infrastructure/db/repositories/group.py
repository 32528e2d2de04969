from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hr_chat.domain.entities.group import Group
from hr_chat.infrastructure.db.mappers import group as mapper
from hr_chat.infrastructure.db.models.group import GroupModel


class GroupReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, group_id: UUID) -> Group | None:
        result = await self._session.get(GroupModel, group_id)
        return mapper.model_to_entity(result) if result else None
