from __future__ import annotations

from dataclasses import dataclass

from hr_chat.domain.value_objects.enums import MessageType
from hr_chat.domain.value_objects.room import RoomKey


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """What a client asked to send, before validation."""

    content: str | None = None
    type: MessageType = MessageType.TEXT
    file_url: str | None = None
    file_name: str | None = None


@dataclass(frozen=True, slots=True)
class MessageDraft:
    """A validated message ready to be appended to the store."""

    room_key: RoomKey
    sender_id: int
    type: MessageType
    content: str
    file_url: str | None = None
    file_name: str | None = None

    @property
    def receiver_id(self) -> int | None:
        if self.room_key.is_private:
            return self.room_key.counterpart(self.sender_id)
        return None
