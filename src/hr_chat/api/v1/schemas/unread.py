from __future__ import annotations

from pydantic import BaseModel


class UnreadResponse(BaseModel):
    private: dict[str, int]
    groups: dict[str, int]
    total: int

    model_config = {"from_attributes": True}
