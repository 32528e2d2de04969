from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class MemberResponse(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class GroupResponse(BaseModel):
    id: UUID
    name: str
    created_by: int
    created_at: datetime
    members: list[MemberResponse]
    member_count: int
