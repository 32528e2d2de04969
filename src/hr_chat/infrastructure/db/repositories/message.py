from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_chat.application.dto.message import MessageDraft
from hr_chat.domain.entities.message import Message
from hr_chat.infrastructure.db.mappers import message as mapper
from hr_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def history(
        self,
        room_key: str,
        *,
        limit: int = 50,
        before_id: int | None = None,
    ) -> list[Message]:
        # Newest-first page, flipped so callers always get oldest-first.
        stmt = (
            select(MessageModel)
            .where(MessageModel.room_key == room_key)
            .order_by(MessageModel.id.desc())
            .limit(limit)
        )
        if before_id is not None:
            stmt = stmt.where(MessageModel.id < before_id)
        result = await self._session.execute(stmt)
        rows = result.scalars().all()
        return [mapper.model_to_entity(m) for m in reversed(rows)]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, draft: MessageDraft, created_at: datetime) -> Message:
        room_key = draft.room_key
        model = MessageModel(
            room_key=str(room_key),
            group_id=room_key.group_id,
            sender_id=draft.sender_id,
            receiver_id=draft.receiver_id,
            type=draft.type.value,
            content=draft.content,
            file_url=draft.file_url,
            file_name=draft.file_name,
            created_at=created_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model, attribute_names=["sender"])
        return mapper.model_to_entity(model)
