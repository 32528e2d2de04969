from __future__ import annotations

from datetime import datetime
from typing import Protocol

from hr_chat.application.dto.message import MessageDraft
from hr_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def history(
        self,
        room_key: str,
        *,
        limit: int = 50,
        before_id: int | None = None,
    ) -> list[Message]:
        """Return up to ``limit`` messages of the room, oldest first."""
        ...


class MessageWriter(Protocol):
    async def append(self, draft: MessageDraft, created_at: datetime) -> Message:
        """Insert the message. The store assigns the id."""
        ...
