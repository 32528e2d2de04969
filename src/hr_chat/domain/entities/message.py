from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    room_key: str
    group_id: UUID | None
    sender_id: int
    receiver_id: int | None
    type: str
    content: str
    file_url: str | None
    file_name: str | None
    created_at: datetime
    sender_name: str | None = None
