from __future__ import annotations

from typing import Protocol
from uuid import UUID

from hr_chat.domain.entities.notification import Notification


class NotificationReader(Protocol):
    async def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        """Newest first."""
        ...

    async def count_unread(self, user_id: int) -> int: ...


class NotificationWriter(Protocol):
    async def add(self, notification: Notification) -> Notification: ...

    async def mark_read(self, notification_id: UUID, user_id: int) -> bool:
        """Return False if the notification does not belong to the user."""
        ...

    async def mark_all_read(self, user_id: int) -> int: ...

    async def delete(self, notification_id: UUID, user_id: int) -> bool: ...
