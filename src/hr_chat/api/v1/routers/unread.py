from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from hr_chat.api.deps import CurrentPrincipal, HubDep
from hr_chat.api.v1.schemas.common import StatusResponse
from hr_chat.api.v1.schemas.unread import UnreadResponse
from hr_chat.application.exceptions import ValidationError
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.services import unread_service

router = APIRouter(prefix="/api/v1/unread", tags=["unread"])


@router.get("", response_model=UnreadResponse)
async def get_unread(principal: CurrentPrincipal, hub: HubDep) -> UnreadResponse:
    counts = await hub.router.unread_counts(principal.user_id)
    summary = unread_service.summarize(principal.user_id, counts)
    return UnreadResponse.model_validate(summary, from_attributes=True)


@router.put("/private/{user_id}", response_model=StatusResponse)
async def clear_private(user_id: int, principal: CurrentPrincipal, hub: HubDep) -> StatusResponse:
    if user_id == principal.user_id:
        raise ValidationError("Invalid user ID")
    await hub.router.clear_unread(principal.user_id, RoomKey.private(principal.user_id, user_id))
    return StatusResponse()


@router.put("/groups/{group_id}", response_model=StatusResponse)
async def clear_group(group_id: UUID, principal: CurrentPrincipal, hub: HubDep) -> StatusResponse:
    await hub.router.clear_unread(principal.user_id, RoomKey.group(group_id))
    return StatusResponse()
