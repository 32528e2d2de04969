from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import NotFoundError
from hr_chat.application.uow import UnitOfWork, UowFactory
from hr_chat.domain.entities.message import Message
from hr_chat.domain.entities.notification import Notification
from hr_chat.domain.value_objects.enums import NotificationPriority, NotificationType
from hr_chat.infrastructure.ws.protocol import notification_to_wire

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80

# Delivers one wire-format notification to its recipient's live sockets.
NotificationSink = Callable[[int, dict[str, Any]], Awaitable[None]]


async def list_notifications(
    principal: Principal,
    unread_only: bool,
    uow: UnitOfWork,
    limit: int = 50,
) -> tuple[list[Notification], int]:
    items = await uow.notifications.list_for_user(
        principal.user_id, unread_only=unread_only, limit=limit,
    )
    unread_count = await uow.notifications.count_unread(principal.user_id)
    return items, unread_count


async def mark_read(notification_id: uuid.UUID, principal: Principal, uow: UnitOfWork) -> None:
    if not await uow.notifications_w.mark_read(notification_id, principal.user_id):
        raise NotFoundError("Notification not found")
    await uow.commit()


async def mark_all_read(principal: Principal, uow: UnitOfWork) -> int:
    updated = await uow.notifications_w.mark_all_read(principal.user_id)
    await uow.commit()
    return updated


async def delete_notification(
    notification_id: uuid.UUID, principal: Principal, uow: UnitOfWork,
) -> None:
    if not await uow.notifications_w.delete(notification_id, principal.user_id):
        raise NotFoundError("Notification not found")
    await uow.commit()


async def notify(
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    uow: UnitOfWork,
    sink: NotificationSink | None = None,
    *,
    related_id: str | None = None,
    priority: NotificationPriority = NotificationPriority.NORMAL,
) -> Notification:
    """Persist a notification, then hand it to ``sink`` for live delivery."""
    notification = Notification(
        id=uuid.uuid4(),
        user_id=user_id,
        type=type.value,
        title=title,
        message=message,
        related_id=related_id,
        priority=priority.value,
        is_read=False,
        read_at=None,
        created_at=datetime.now(timezone.utc),
    )
    notification = await uow.notifications_w.add(notification)
    await uow.commit()
    if sink is not None:
        await sink(user_id, notification_to_wire(notification))
    return notification


def preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "…"
    return content


class GroupMessageNotifier:
    """Sends a ``chat`` notification to every other member after a group post."""

    def __init__(self, uow_factory: UowFactory, sink: NotificationSink | None = None) -> None:
        self._uow_factory = uow_factory
        self._sink = sink

    async def __call__(self, message: Message, recipients: frozenset[int]) -> None:
        if message.group_id is None or not recipients:
            return
        async with self._uow_factory() as uow:
            group = await uow.groups.get_by_id(message.group_id)
        if group is None:
            return
        title = f"💬 {group.name}"
        body = f"{message.sender_name or 'Someone'}: {preview(message.content)}"
        notified = 0
        for user_id in sorted(recipients):
            # One unit of work per recipient.
            try:
                async with self._uow_factory() as uow:
                    await notify(
                        user_id,
                        NotificationType.CHAT,
                        title,
                        body,
                        uow,
                        self._sink,
                        related_id=str(message.group_id),
                    )
            except Exception:
                logger.exception(
                    "Chat notification of message %s for user %s failed", message.id, user_id,
                )
                continue
            notified += 1
        logger.debug(
            "Group message %s notified %d of %d member(s)",
            message.id,
            notified,
            len(recipients),
        )
