from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from hr_chat.application.dto.message import MessageDraft
from hr_chat.application.dto.principal import Principal
from hr_chat.application.policies.permissions import assert_group_member, assert_private_peer
from hr_chat.application.uow import UnitOfWork
from hr_chat.domain.entities.message import Message
from hr_chat.domain.value_objects.room import RoomKey


async def append_message(draft: MessageDraft, uow: UnitOfWork) -> Message:
    """Store a validated message and commit. The store assigns id and order."""
    message = await uow.messages_w.append(draft, datetime.now(timezone.utc))
    await uow.commit()
    return message


async def list_private_history(
    other_user_id: int,
    principal: Principal,
    limit: int,
    before_id: int | None,
    uow: UnitOfWork,
) -> list[Message]:
    other = await uow.users.get_by_id(other_user_id)
    assert_private_peer(principal, other_user_id, other)
    room_key = RoomKey.private(principal.user_id, other_user_id)
    return await uow.messages.history(str(room_key), limit=limit, before_id=before_id)


async def list_group_history(
    group_id: UUID,
    principal: Principal,
    limit: int,
    before_id: int | None,
    uow: UnitOfWork,
) -> list[Message]:
    group = await uow.groups.get_by_id(group_id)
    assert_group_member(principal, group)
    return await uow.messages.history(
        str(RoomKey.group(group_id)), limit=limit, before_id=before_id,
    )
