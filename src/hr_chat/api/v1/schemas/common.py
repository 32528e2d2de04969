from __future__ import annotations

from pydantic import BaseModel


class StatusResponse(BaseModel):
    success: bool = True
    message: str | None = None
