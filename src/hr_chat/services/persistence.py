"""Message store and directory used by the realtime core.

Each call runs in its own unit of work, so a slow or failed write never
leaves a session shared with another request.
"""
from __future__ import annotations

import logging
from uuid import UUID

from hr_chat.application.dto.message import MessageDraft
from hr_chat.application.exceptions import AppError, PersistenceError
from hr_chat.application.uow import UowFactory
from hr_chat.domain.entities.message import Message
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.services import message_service

logger = logging.getLogger(__name__)


class UowChatStore:
    """Implements MessageGateway and Directory on top of a unit of work."""

    def __init__(self, uow_factory: UowFactory) -> None:
        self._uow_factory = uow_factory

    async def append(self, draft: MessageDraft) -> Message:
        async with self._uow_factory() as uow:
            return await message_service.append_message(draft, uow)

    async def history(
        self,
        room_key: RoomKey,
        *,
        limit: int,
        before_id: int | None = None,
    ) -> list[Message]:
        async with self._uow_factory() as uow:
            return await uow.messages.history(str(room_key), limit=limit, before_id=before_id)

    async def group_roster(self, group_id: UUID) -> frozenset[int] | None:
        try:
            async with self._uow_factory() as uow:
                group = await uow.groups.get_by_id(group_id)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Failed to load roster of group %s", group_id)
            raise PersistenceError("Failed to load the group") from exc
        return group.member_ids if group is not None else None

    async def user_exists(self, user_id: int) -> bool:
        try:
            async with self._uow_factory() as uow:
                user = await uow.users.get_by_id(user_id)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Failed to look up user %s", user_id)
            raise PersistenceError("Failed to look up the user") from exc
        return user is not None
