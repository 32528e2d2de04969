from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from hr_chat.api.deps import CurrentPrincipal, UoWDep
from hr_chat.api.v1.schemas.common import StatusResponse
from hr_chat.api.v1.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from hr_chat.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    principal: CurrentPrincipal,
    uow: UoWDep,
    unread: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> NotificationListResponse:
    items, unread_count = await notification_service.list_notifications(
        principal, unread, uow, limit=limit,
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n, from_attributes=True) for n in items],
        unread_count=unread_count,
    )


# Declared before /{notification_id}/read so "read-all" is never parsed as an id.
@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(principal: CurrentPrincipal, uow: UoWDep) -> MarkAllReadResponse:
    updated = await notification_service.mark_all_read(principal, uow)
    return MarkAllReadResponse(updated=updated)


@router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_read(
    notification_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> StatusResponse:
    await notification_service.mark_read(notification_id, principal, uow)
    return StatusResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=StatusResponse)
async def delete_notification(
    notification_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> StatusResponse:
    await notification_service.delete_notification(notification_id, principal, uow)
    return StatusResponse(message="Notification deleted")
