from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, File, Query, Request, UploadFile, status

from hr_chat.api.deps import CurrentPrincipal, HubDep, UoWDep
from hr_chat.api.v1.schemas.group import GroupResponse, MemberResponse
from hr_chat.api.v1.schemas.message import MessageResponse
from hr_chat.application.dto.message import OutgoingMessage
from hr_chat.config import settings
from hr_chat.domain.value_objects.enums import MessageType
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.services import file_service, group_service, message_service

router = APIRouter(prefix="/api/v1/groups", tags=["groups"])


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> GroupResponse:
    group, members = await group_service.get_group(group_id, principal, uow)
    return GroupResponse(
        id=group.id,
        name=group.name,
        created_by=group.created_by,
        created_at=group.created_at,
        members=[MemberResponse.model_validate(u, from_attributes=True) for u in members],
        member_count=len(group.member_ids),
    )


@router.get("/{group_id}/messages", response_model=list[MessageResponse])
async def list_group_messages(
    group_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1, le=settings.HISTORY_MAX_LIMIT),
    before_id: int | None = Query(None, ge=1),
) -> list[MessageResponse]:
    messages = await message_service.list_group_history(
        group_id, principal, limit, before_id, uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post(
    "/{group_id}/files",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_group_file(
    group_id: UUID,
    request: Request,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
    file: UploadFile = File(...),
) -> MessageResponse:
    """Store the file, then post it to the group like any other message."""
    await group_service.require_membership(group_id, principal, uow)
    stored = await file_service.save_upload(
        file,
        request.app.state.upload_dir,
        max_bytes=settings.UPLOAD_MAX_BYTES,
        allowed_types=settings.UPLOAD_ALLOWED_TYPES,
    )
    message = await hub.router.send(
        None,
        principal.user_id,
        RoomKey.group(group_id),
        OutgoingMessage(
            content=f"[File] {stored.original_name}",
            type=MessageType.FILE,
            file_url=stored.url,
            file_name=stored.original_name,
        ),
    )
    return MessageResponse.model_validate(message, from_attributes=True)
