from __future__ import annotations

import uuid

import pytest

from hr_chat.application.dto.message import MessageDraft
from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from hr_chat.domain.value_objects.enums import MessageType
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.services import message_service
from tests.conftest import ALICE, BOB, CAROL, FakeUoW, make_group


def _draft(room_key, sender_id, content="hello"):
    return MessageDraft(room_key=room_key, sender_id=sender_id, type=MessageType.TEXT, content=content)


@pytest.fixture
def uow(store) -> FakeUoW:
    return FakeUoW(store)


@pytest.mark.asyncio
async def test_append_message_commits_and_assigns_id(uow):
    msg = await message_service.append_message(_draft(RoomKey.private(ALICE, BOB), ALICE), uow)

    assert msg.id == 1
    assert msg.receiver_id == BOB
    assert msg.room_key == "private:1-2"
    assert uow._committed is True


@pytest.mark.asyncio
async def test_private_history_is_oldest_first(uow, user_principal):
    room = RoomKey.private(ALICE, BOB)
    await message_service.append_message(_draft(room, ALICE, "hello"), uow)
    await message_service.append_message(_draft(RoomKey.private(ALICE, CAROL), ALICE, "other"), uow)
    await message_service.append_message(_draft(room, BOB, "hi back"), uow)

    history = await message_service.list_private_history(BOB, user_principal, 50, None, uow)

    assert [m.content for m in history] == ["hello", "hi back"]
    assert history[0].created_at < history[1].created_at


@pytest.mark.asyncio
async def test_private_history_with_self_is_invalid(uow, user_principal):
    with pytest.raises(ValidationError):
        await message_service.list_private_history(ALICE, user_principal, 50, None, uow)


@pytest.mark.asyncio
async def test_private_history_with_unknown_user(uow, user_principal):
    with pytest.raises(NotFoundError):
        await message_service.list_private_history(999, user_principal, 50, None, uow)


@pytest.mark.asyncio
async def test_group_history_requires_membership(uow, store):
    group = store.add_group(make_group({BOB, CAROL}))
    outsider = Principal(user_id=ALICE)

    with pytest.raises(ForbiddenError):
        await message_service.list_group_history(group.id, outsider, 50, None, uow)
    with pytest.raises(NotFoundError):
        await message_service.list_group_history(uuid.uuid4(), outsider, 50, None, uow)


@pytest.mark.asyncio
async def test_group_history_pages_backwards(uow, store):
    group = store.add_group(make_group({ALICE, BOB}))
    room = RoomKey.group(group.id)
    for i in range(4):
        await message_service.append_message(_draft(room, ALICE, f"m{i}"), uow)
    member = Principal(user_id=BOB)

    latest = await message_service.list_group_history(group.id, member, 2, None, uow)
    older = await message_service.list_group_history(group.id, member, 2, latest[0].id, uow)

    assert [m.content for m in latest] == ["m2", "m3"]
    assert [m.content for m in older] == ["m0", "m1"]
