"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from hr_chat.application.dto.message import MessageDraft
from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import AuthError, ConnectionClosed, TransportError
from hr_chat.domain.entities.group import Group
from hr_chat.domain.entities.message import Message
from hr_chat.domain.entities.notification import Notification
from hr_chat.domain.entities.user import User
from hr_chat.realtime.hub import ChatHub, build_hub
from hr_chat.services.persistence import UowChatStore

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4


def make_user(user_id: int, name: str | None = None) -> User:
    name = name or f"user{user_id}"
    return User(id=user_id, name=name, email=f"{name.lower()}@example.com")


def make_group(
    members: set[int],
    *,
    group_id: UUID | None = None,
    name: str = "Engineering",
    created_by: int | None = None,
) -> Group:
    return Group(
        id=group_id or uuid.uuid4(),
        name=name,
        created_by=created_by if created_by is not None else min(members),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        member_ids=frozenset(members),
    )


def make_notification(user_id: int, *, is_read: bool = False, title: str = "Hi") -> Notification:
    return Notification(
        id=uuid.uuid4(),
        user_id=user_id,
        type="task",
        title=title,
        message="You have a new task",
        related_id=None,
        priority="normal",
        is_read=is_read,
        read_at=None,
        created_at=datetime.now(timezone.utc),
    )


@dataclass
class FakeStore:
    """State shared by every FakeUoW created from the same factory."""

    users: dict[int, User] = field(default_factory=dict)
    groups: dict[UUID, Group] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    next_message_id: int = 1
    base_time: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))

    def add_users(self, *user_ids: int) -> None:
        for user_id in user_ids:
            self.users[user_id] = make_user(user_id)

    def add_group(self, group: Group) -> Group:
        self.groups[group.id] = group
        return group


@dataclass
class FakeUserReader:
    _store: FakeStore
    fail_with: Exception | None = None

    async def get_by_id(self, user_id: int) -> User | None:
        if self.fail_with is not None:
            raise self.fail_with
        return self._store.users.get(user_id)

    async def list_by_ids(self, user_ids: list[int]) -> list[User]:
        return [self._store.users[u] for u in user_ids if u in self._store.users]


@dataclass
class FakeGroupReader:
    _store: FakeStore
    fail_with: Exception | None = None

    async def get_by_id(self, group_id: UUID) -> Group | None:
        if self.fail_with is not None:
            raise self.fail_with
        return self._store.groups.get(group_id)


@dataclass
class FakeMessageReader:
    _store: FakeStore

    async def history(
        self, room_key: str, *, limit: int = 50, before_id: int | None = None,
    ) -> list[Message]:
        rows = [
            m for m in self._store.messages
            if m.room_key == room_key and (before_id is None or m.id < before_id)
        ]
        rows.sort(key=lambda m: m.id)
        return rows[-limit:]


@dataclass
class FakeMessageWriter:
    _store: FakeStore
    fail_with: Exception | None = None
    delay: float = 0.0

    async def append(self, draft: MessageDraft, created_at: datetime) -> Message:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        store = self._store
        message_id = store.next_message_id
        store.next_message_id += 1
        sender = store.users.get(draft.sender_id)
        message = Message(
            id=message_id,
            room_key=str(draft.room_key),
            group_id=draft.room_key.group_id,
            sender_id=draft.sender_id,
            receiver_id=draft.receiver_id,
            type=draft.type.value,
            content=draft.content,
            file_url=draft.file_url,
            file_name=draft.file_name,
            # Strictly increasing, like the database clock under the room lock.
            created_at=store.base_time + timedelta(seconds=message_id),
            sender_name=sender.name if sender else None,
        )
        store.messages.append(message)
        return message


@dataclass
class FakeNotificationReader:
    _store: FakeStore

    async def list_for_user(
        self, user_id: int, *, unread_only: bool = False, limit: int = 50,
    ) -> list[Notification]:
        rows = [
            n for n in self._store.notifications
            if n.user_id == user_id and not (unread_only and n.is_read)
        ]
        rows.sort(key=lambda n: n.created_at, reverse=True)
        return rows[:limit]

    async def count_unread(self, user_id: int) -> int:
        return sum(1 for n in self._store.notifications if n.user_id == user_id and not n.is_read)


@dataclass
class FakeNotificationWriter:
    _store: FakeStore

    async def add(self, notification: Notification) -> Notification:
        self._store.notifications.append(notification)
        return notification

    async def mark_read(self, notification_id: UUID, user_id: int) -> bool:
        for i, n in enumerate(self._store.notifications):
            if n.id == notification_id and n.user_id == user_id:
                self._store.notifications[i] = Notification(
                    id=n.id,
                    user_id=n.user_id,
                    type=n.type,
                    title=n.title,
                    message=n.message,
                    related_id=n.related_id,
                    priority=n.priority,
                    is_read=True,
                    read_at=datetime.now(timezone.utc),
                    created_at=n.created_at,
                )
                return True
        return False

    async def mark_all_read(self, user_id: int) -> int:
        unread = [n.id for n in self._store.notifications if n.user_id == user_id and not n.is_read]
        for notification_id in unread:
            await self.mark_read(notification_id, user_id)
        return len(unread)

    async def delete(self, notification_id: UUID, user_id: int) -> bool:
        before = len(self._store.notifications)
        self._store.notifications = [
            n for n in self._store.notifications
            if not (n.id == notification_id and n.user_id == user_id)
        ]
        return len(self._store.notifications) < before


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    store: FakeStore = field(default_factory=FakeStore)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        self.users = FakeUserReader(self.store)
        self.groups = FakeGroupReader(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self.notifications = FakeNotificationReader(self.store)
        self.notifications_w = FakeNotificationWriter(self.store)

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True

    async def flush(self) -> None:
        pass

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()


class FakeUowFactory:
    """Hands out FakeUoWs over one shared store, and can make reads or writes fail."""

    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.fail_with: Exception | None = None
        self.lookup_fail_with: Exception | None = None
        self.delay = 0.0

    def __call__(self) -> FakeUoW:
        uow = FakeUoW(self.store)
        uow.messages_w.fail_with = self.fail_with
        uow.messages_w.delay = self.delay
        uow.users.fail_with = self.lookup_fail_with
        uow.groups.fail_with = self.lookup_fail_with
        return uow


class FakeTransport:
    """Scripted socket: frames sent by the server land in ``sent``."""

    def __init__(self, *, fail_sends: bool = False) -> None:
        self.accepted = False
        self.closed_with: tuple[int, str] | None = None
        self.fail_sends = fail_sends
        self.sent: list[str] = []
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def accept(self) -> None:
        self.accepted = True

    async def receive_text(self) -> str:
        raw = await self._inbox.get()
        if raw is None:
            raise ConnectionClosed("peer closed")
        return raw

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise TransportError("broken pipe")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed_with is None:
            self.closed_with = (code, reason)
        self._inbox.put_nowait(None)

    def feed(self, frame: dict[str, Any]) -> None:
        self._inbox.put_nowait(json.dumps(frame))

    def hang_up(self) -> None:
        self._inbox.put_nowait(None)

    def frames(self, kind: str | None = None) -> list[dict[str, Any]]:
        decoded = [json.loads(raw) for raw in self.sent]
        return [f for f in decoded if kind is None or f["kind"] == kind]


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_users(ALICE, BOB, CAROL, DAVE)
    return s


@pytest.fixture
def uow_factory(store: FakeStore) -> FakeUowFactory:
    return FakeUowFactory(store)


@pytest.fixture
def user_principal() -> Principal:
    return Principal(user_id=ALICE, email="alice@example.com", roles=["employee"])


class FakeVerifier:
    """Accepts tokens of the form ``user-<id>``."""

    async def verify(self, token: str) -> Principal:
        prefix, _, raw_id = token.partition("-")
        if prefix != "user" or not raw_id.isdigit():
            raise AuthError("Invalid token")
        return Principal(user_id=int(raw_id))


@pytest.fixture
def hub(uow_factory: FakeUowFactory) -> ChatHub:
    store = UowChatStore(uow_factory)
    return build_hub(store, store, FakeVerifier())
