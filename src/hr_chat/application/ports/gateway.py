from __future__ import annotations

from typing import Protocol
from uuid import UUID

from hr_chat.application.dto.message import MessageDraft
from hr_chat.domain.entities.message import Message
from hr_chat.domain.value_objects.room import RoomKey


class MessageGateway(Protocol):
    """Durable append-only message store."""

    async def append(self, draft: MessageDraft) -> Message:
        """Persist and return the message with its server-assigned id and timestamp."""
        ...

    async def history(
        self,
        room_key: RoomKey,
        *,
        limit: int,
        before_id: int | None = None,
    ) -> list[Message]:
        """Oldest-first page ending just before ``before_id`` (or at the newest message)."""
        ...


class Directory(Protocol):
    """Read-only view of users and group rosters owned by the HR data layer."""

    async def group_roster(self, group_id: UUID) -> frozenset[int] | None:
        """Member ids, or None if the group does not exist."""
        ...

    async def user_exists(self, user_id: int) -> bool: ...
