from __future__ import annotations

from fastapi import APIRouter, Query

from hr_chat.api.deps import CurrentPrincipal, UoWDep
from hr_chat.api.v1.schemas.message import MessageResponse
from hr_chat.config import settings
from hr_chat.services import message_service

router = APIRouter(prefix="/api/v1/private-messages", tags=["messages"])


@router.get("/{user_id}", response_model=list[MessageResponse])
async def list_private_messages(
    user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1, le=settings.HISTORY_MAX_LIMIT),
    before_id: int | None = Query(None, ge=1),
) -> list[MessageResponse]:
    messages = await message_service.list_private_history(
        user_id, principal, limit, before_id, uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]
