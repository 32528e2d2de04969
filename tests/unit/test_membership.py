from __future__ import annotations

import uuid

import pytest

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from hr_chat.domain.value_objects.room import RoomKey
from tests.conftest import ALICE, BOB, CAROL, DAVE, FakeTransport, make_group


def _connect(hub, user_id):
    return hub.registry.register(Principal(user_id=user_id), FakeTransport())


@pytest.mark.asyncio
async def test_join_group_succeeds_for_every_roster_member(hub, store):
    group = store.add_group(make_group({ALICE, BOB, CAROL}))

    for user_id in (ALICE, BOB, CAROL):
        conn = _connect(hub, user_id)
        result = await hub.membership.join_group(conn.id, user_id, group.id)
        assert result.success is True
        assert result.message == "Joined group"
        assert conn.id in hub.membership.subscribers(RoomKey.group(group.id))


@pytest.mark.asyncio
async def test_join_group_forbidden_for_non_member(hub, store):
    group = store.add_group(make_group({ALICE, BOB}))
    conn = _connect(hub, DAVE)

    with pytest.raises(ForbiddenError):
        await hub.membership.join_group(conn.id, DAVE, group.id)
    assert hub.membership.subscribers(RoomKey.group(group.id)) == frozenset()


@pytest.mark.asyncio
async def test_join_unknown_group(hub):
    conn = _connect(hub, ALICE)
    with pytest.raises(NotFoundError):
        await hub.membership.join_group(conn.id, ALICE, uuid.uuid4())


@pytest.mark.asyncio
async def test_join_with_someone_elses_connection(hub, store):
    group = store.add_group(make_group({ALICE, BOB}))
    conn = _connect(hub, ALICE)

    with pytest.raises(ForbiddenError):
        await hub.membership.join_group(conn.id, BOB, group.id)


@pytest.mark.asyncio
async def test_join_with_unregistered_connection(hub, store):
    group = store.add_group(make_group({ALICE}))
    with pytest.raises(NotFoundError):
        await hub.membership.join_group("missing", ALICE, group.id)


@pytest.mark.asyncio
async def test_join_private_resolves_same_room_from_both_sides(hub):
    c1 = _connect(hub, ALICE)
    c2 = _connect(hub, BOB)

    r1 = await hub.membership.join_private(c1.id, ALICE, BOB)
    r2 = await hub.membership.join_private(c2.id, BOB, ALICE)

    assert r1.room_key == r2.room_key
    assert hub.membership.subscribers(r1.room_key) == {c1.id, c2.id}


@pytest.mark.asyncio
async def test_join_private_with_self_is_rejected(hub):
    conn = _connect(hub, ALICE)
    with pytest.raises(ValidationError):
        await hub.membership.join_private(conn.id, ALICE, ALICE)


@pytest.mark.asyncio
async def test_join_private_with_unknown_user(hub):
    conn = _connect(hub, ALICE)
    with pytest.raises(NotFoundError):
        await hub.membership.join_private(conn.id, ALICE, 999)


@pytest.mark.asyncio
async def test_leave_is_idempotent(hub, store):
    group = store.add_group(make_group({ALICE}))
    conn = _connect(hub, ALICE)
    room = RoomKey.group(group.id)
    await hub.membership.join_group(conn.id, ALICE, group.id)

    await hub.membership.leave(conn.id, room)
    await hub.membership.leave(conn.id, room)

    assert hub.membership.subscribers(room) == frozenset()
    assert hub.membership.rooms_of(conn.id) == frozenset()


@pytest.mark.asyncio
async def test_members_of_private_room_is_the_pair(hub):
    assert await hub.membership.members_of(RoomKey.private(BOB, ALICE)) == {ALICE, BOB}


@pytest.mark.asyncio
async def test_members_of_group_is_the_roster(hub, store):
    group = store.add_group(make_group({ALICE, BOB, CAROL}))
    assert await hub.membership.members_of(RoomKey.group(group.id)) == {ALICE, BOB, CAROL}


@pytest.mark.asyncio
async def test_disconnect_drops_every_subscription(hub, store):
    group = store.add_group(make_group({ALICE, BOB}))
    conn = _connect(hub, ALICE)
    await hub.membership.join_group(conn.id, ALICE, group.id)
    await hub.membership.join_private(conn.id, ALICE, BOB)

    assert hub.supervisor.disconnect(conn.id) is True

    assert hub.registry.connections_for(ALICE) == set()
    assert hub.membership.rooms_of(conn.id) == frozenset()
    assert hub.membership.subscribers(RoomKey.group(group.id)) == frozenset()
    assert not hub.membership.is_watching(ALICE, RoomKey.private(ALICE, BOB))


@pytest.mark.asyncio
async def test_send_rechecks_roster_after_join(hub, store):
    group = store.add_group(make_group({ALICE, BOB}))
    conn = _connect(hub, BOB)
    await hub.membership.join_group(conn.id, BOB, group.id)

    # BOB is removed from the group after joining.
    store.add_group(make_group({ALICE}, group_id=group.id))

    with pytest.raises(ForbiddenError):
        await hub.membership.authorize_send(BOB, RoomKey.group(group.id))


@pytest.mark.asyncio
async def test_directory_outage_surfaces_as_persistence_error(hub, store, uow_factory):
    group = store.add_group(make_group({ALICE, BOB}))
    conn = _connect(hub, ALICE)
    uow_factory.lookup_fail_with = OSError("database unreachable")

    with pytest.raises(PersistenceError):
        await hub.membership.join_group(conn.id, ALICE, group.id)
    with pytest.raises(PersistenceError):
        await hub.membership.join_private(conn.id, ALICE, BOB)
    with pytest.raises(PersistenceError):
        await hub.membership.authorize_send(ALICE, RoomKey.group(group.id))
    assert hub.membership.rooms_of(conn.id) == frozenset()
