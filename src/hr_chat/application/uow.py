from __future__ import annotations

from types import TracebackType
from typing import Callable, Protocol, Self

from hr_chat.application.repositories.group import GroupReader
from hr_chat.application.repositories.message import MessageReader, MessageWriter
from hr_chat.application.repositories.notification import (
    NotificationReader,
    NotificationWriter,
)
from hr_chat.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    users: UserReader
    groups: GroupReader
    messages: MessageReader
    messages_w: MessageWriter
    notifications: NotificationReader
    notifications_w: NotificationWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...


UowFactory = Callable[[], UnitOfWork]
