from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Notification:
    id: UUID
    user_id: int
    type: str
    title: str
    message: str
    related_id: str | None
    priority: str
    is_read: bool
    read_at: datetime | None
    created_at: datetime
