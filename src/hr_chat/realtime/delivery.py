"""Delivery router: persist a message, then fan it out to live members.

Persistence always happens first and is the only source of ordering.
The append and the enqueue onto every recipient connection happen under
one per-room lock, so every connection sees a room's messages in the
order they were stored. A failing connection is dropped and logged; it
never fails the send or affects other recipients.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable

from hr_chat.application.dto.message import MessageDraft, OutgoingMessage
from hr_chat.application.exceptions import (
    AppError,
    ForbiddenError,
    PersistenceError,
    PersistenceTimeout,
    TransportError,
    ValidationError,
)
from hr_chat.application.ports.gateway import MessageGateway
from hr_chat.application.ports.unread import UnreadStore
from hr_chat.domain.entities.message import Message
from hr_chat.domain.value_objects.enums import MessageType
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.infrastructure.ws.protocol import encode, event_for, message_to_wire
from hr_chat.realtime.connection import Connection
from hr_chat.realtime.locks import KeyedLock
from hr_chat.realtime.membership import RoomMembership
from hr_chat.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

GroupNotifier = Callable[[Message, frozenset[int]], Awaitable[None]]


class DeliveryRouter:
    def __init__(
        self,
        registry: ConnectionRegistry,
        membership: RoomMembership,
        gateway: MessageGateway,
        unread: UnreadStore,
        *,
        persist_timeout: float = 5.0,
        max_length: int = 4000,
        notifier: GroupNotifier | None = None,
    ) -> None:
        self._registry = registry
        self._membership = membership
        self._gateway = gateway
        self._unread = unread
        self._persist_timeout = persist_timeout
        self._max_length = max_length
        self.notifier = notifier
        self._room_locks = KeyedLock()
        self._background: set[asyncio.Task[None]] = set()

    async def send(
        self,
        sender_connection_id: str | None,
        sender_id: int,
        room_key: RoomKey,
        payload: OutgoingMessage,
    ) -> Message:
        """Persist and fan out one message.

        ``sender_connection_id`` is None when the message comes from a REST
        upload rather than a socket. Every member, the sender included,
        receives the push on all of their live connections.
        """
        if sender_connection_id is not None:
            connection = self._registry.get(sender_connection_id)
            if connection is not None and connection.user_id != sender_id:
                raise ForbiddenError("Connection belongs to another user")

        draft = self._validate(sender_id, room_key, payload)
        members = await self._membership.authorize_send(sender_id, room_key)

        async with self._room_locks.hold(room_key):
            message = await self._persist(draft)
            delivered = self._fan_out(message, members)
            unwatched = [
                user_id
                for user_id in members
                if user_id != sender_id and not self._membership.is_watching(user_id, room_key)
            ]

        logger.debug(
            "Message %s in %s delivered to %d connection(s), %d unread marker(s)",
            message.id,
            room_key,
            delivered,
            len(unwatched),
        )
        await self._mark_unread(message, unwatched)
        if room_key.is_group and self.notifier is not None:
            self._spawn(self._notify(message, members - {sender_id}))
        return message

    async def history(
        self,
        room_key: RoomKey,
        limit: int,
        before_id: int | None = None,
    ) -> list[Message]:
        """Oldest-first page of at most ``limit`` messages before ``before_id``."""
        if limit < 1:
            raise ValidationError("limit must be positive")
        return await self._gateway.history(room_key, limit=limit, before_id=before_id)

    def push_to_user(self, user_id: int, kind: str, payload: dict[str, Any]) -> int:
        """Push one frame to every live connection of a user."""
        frame = encode(kind, payload)
        return sum(self._push(conn, frame) for conn in self._registry.live_connections(user_id))

    async def clear_unread(self, user_id: int, room_key: RoomKey) -> None:
        await self._unread.clear(user_id, str(room_key))

    async def unread_counts(self, user_id: int) -> dict[str, int]:
        return await self._unread.counts(user_id)

    async def wait_idle(self) -> None:
        """Wait for background side effects (notifications) to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _validate(self, sender_id: int, room_key: RoomKey, payload: OutgoingMessage) -> MessageDraft:
        content = (payload.content or "").strip()[: self._max_length]
        if payload.type == MessageType.FILE:
            if room_key.is_private:
                raise ValidationError("Files can only be shared in groups")
            if not payload.file_url or not payload.file_name:
                raise ValidationError("File messages need fileUrl and fileName")
            content = content or f"[File] {payload.file_name}"
        elif not content:
            raise ValidationError("Message content cannot be empty")
        return MessageDraft(
            room_key=room_key,
            sender_id=sender_id,
            type=payload.type,
            content=content,
            file_url=payload.file_url if payload.type == MessageType.FILE else None,
            file_name=payload.file_name if payload.type == MessageType.FILE else None,
        )

    async def _persist(self, draft: MessageDraft) -> Message:
        try:
            return await asyncio.wait_for(
                self._gateway.append(draft), timeout=self._persist_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Persisting message in %s timed out after %.1fs",
                draft.room_key,
                self._persist_timeout,
            )
            raise PersistenceTimeout("Timed out while saving the message") from exc
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Failed to persist message in %s", draft.room_key)
            raise PersistenceError("Failed to save the message") from exc

    def _fan_out(self, message: Message, members: Iterable[int]) -> int:
        frame = encode(event_for(message), message_to_wire(message))
        delivered = 0
        for user_id in members:
            for connection in self._registry.live_connections(user_id):
                delivered += self._push(connection, frame)
        return delivered

    def _push(self, connection: Connection, frame: str) -> bool:
        try:
            connection.push(frame)
        except TransportError as exc:
            logger.warning(
                "Push to connection %s (user %s) failed: %s",
                connection.id,
                connection.user_id,
                exc,
            )
            connection.abort(code=1013, reason="Client too slow")
            return False
        return True

    async def _mark_unread(self, message: Message, user_ids: list[int]) -> None:
        for user_id in user_ids:
            try:
                await self._unread.increment(user_id, message.room_key)
            except Exception:
                logger.exception(
                    "Failed to bump unread marker of user %s for %s", user_id, message.room_key,
                )

    async def _notify(self, message: Message, recipients: frozenset[int]) -> None:
        assert self.notifier is not None
        try:
            await self.notifier(message, recipients)
        except Exception:
            logger.exception("Group notification for message %s failed", message.id)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
