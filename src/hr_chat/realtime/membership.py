"""Room subscriptions and the authorization rules behind them."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from hr_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from hr_chat.application.ports.gateway import Directory
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.realtime.connection import Connection
from hr_chat.realtime.locks import KeyedLock
from hr_chat.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JoinResult:
    room_key: RoomKey
    success: bool = True
    message: str | None = None


class RoomMembership:
    """Tracks which connections are subscribed to which rooms.

    Group joins are checked against the persisted roster. Private rooms
    are open to either participant. Mutations of one room are serialized
    with a per-room lock; different rooms never block each other.
    """

    def __init__(self, registry: ConnectionRegistry, directory: Directory) -> None:
        self._registry = registry
        self._directory = directory
        self._subscribers: dict[RoomKey, set[str]] = {}
        self._rooms: dict[str, set[RoomKey]] = {}
        self._locks = KeyedLock()

    async def join_group(self, connection_id: str, user_id: int, group_id: UUID) -> JoinResult:
        self._owned_connection(connection_id, user_id)
        room_key = RoomKey.group(group_id)
        async with self._locks.hold(room_key):
            roster = await self._directory.group_roster(group_id)
            if roster is None:
                raise NotFoundError("Group not found")
            if user_id not in roster:
                raise ForbiddenError("Access denied: not a member of this group")
            self._subscribe(connection_id, room_key)
        logger.info("User %s joined room %s", user_id, room_key)
        return JoinResult(room_key=room_key, message="Joined group")

    async def join_private(
        self, connection_id: str, user_id: int, target_user_id: int,
    ) -> JoinResult:
        self._owned_connection(connection_id, user_id)
        if target_user_id == user_id:
            raise ValidationError("Cannot open a private conversation with yourself")
        if not await self._directory.user_exists(target_user_id):
            raise NotFoundError("User not found")
        room_key = RoomKey.private(user_id, target_user_id)
        async with self._locks.hold(room_key):
            self._subscribe(connection_id, room_key)
        logger.info("User %s joined private room %s", user_id, room_key)
        return JoinResult(room_key=room_key)

    async def leave(self, connection_id: str, room_key: RoomKey) -> None:
        async with self._locks.hold(room_key):
            self._unsubscribe(connection_id, room_key)

    async def members_of(self, room_key: RoomKey) -> frozenset[int]:
        if room_key.is_private:
            return frozenset(room_key.user_ids or ())
        roster = await self._directory.group_roster(room_key.group_id)  # type: ignore[arg-type]
        if roster is None:
            raise NotFoundError("Group not found")
        return roster

    async def authorize_send(self, user_id: int, room_key: RoomKey) -> frozenset[int]:
        """Re-check that ``user_id`` may post to the room; return its members."""
        members = await self.members_of(room_key)
        if user_id not in members:
            if room_key.is_group:
                raise ForbiddenError("Access denied: not a member of this group")
            raise ForbiddenError("Not a participant of this conversation")
        if room_key.is_private:
            receiver_id = room_key.counterpart(user_id)
            if not await self._directory.user_exists(receiver_id):
                raise NotFoundError("Receiver not found")
        return members

    def subscribers(self, room_key: RoomKey) -> frozenset[str]:
        return frozenset(self._subscribers.get(room_key, ()))

    def rooms_of(self, connection_id: str) -> frozenset[RoomKey]:
        return frozenset(self._rooms.get(connection_id, ()))

    def is_watching(self, user_id: int, room_key: RoomKey) -> bool:
        """True if any live connection of the user has the room open."""
        for connection_id in self._subscribers.get(room_key, ()):
            connection = self._registry.get(connection_id)
            if connection is not None and connection.user_id == user_id:
                return True
        return False

    def drop_connection(self, connection_id: str) -> None:
        """Forget every subscription of a connection that went away."""
        for room_key in self._rooms.pop(connection_id, set()):
            subs = self._subscribers.get(room_key)
            if subs is None:
                continue
            subs.discard(connection_id)
            if not subs:
                del self._subscribers[room_key]

    def _owned_connection(self, connection_id: str, user_id: int) -> Connection:
        connection = self._registry.get(connection_id)
        if connection is None:
            raise NotFoundError("Connection is not registered")
        if connection.user_id != user_id:
            raise ForbiddenError("Connection belongs to another user")
        return connection

    def _subscribe(self, connection_id: str, room_key: RoomKey) -> None:
        # The connection may have been dropped while the roster was loading.
        if connection_id not in self._registry:
            logger.debug("Skip join of %s for departed connection %s", room_key, connection_id)
            return
        self._subscribers.setdefault(room_key, set()).add(connection_id)
        self._rooms.setdefault(connection_id, set()).add(room_key)

    def _unsubscribe(self, connection_id: str, room_key: RoomKey) -> None:
        subs = self._subscribers.get(room_key)
        if subs:
            subs.discard(connection_id)
            if not subs:
                del self._subscribers[room_key]
        rooms = self._rooms.get(connection_id)
        if rooms:
            rooms.discard(room_key)
            if not rooms:
                del self._rooms[connection_id]
