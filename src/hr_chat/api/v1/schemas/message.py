from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    sender_name: str | None = None
    receiver_id: int | None = None
    group_id: UUID | None = None
    type: str
    content: str
    file_url: str | None = None
    file_name: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
