"""In-process registry of live connections per user."""
from __future__ import annotations

import logging

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import AuthError
from hr_chat.application.ports.clock import Clock, SystemClock
from hr_chat.application.ports.transport import Transport
from hr_chat.realtime.connection import Connection
from hr_chat.realtime.lifecycle import ConnectionLifecycle

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Maps user ids to their live connections.

    Mutated only by the presence supervisor. Mutations never await, so
    each one is atomic on the event loop.
    """

    def __init__(self, clock: Clock | None = None, *, send_queue_size: int = 256) -> None:
        self._clock = clock or SystemClock()
        self._send_queue_size = send_queue_size
        self._connections: dict[str, Connection] = {}
        self._by_user: dict[int, set[str]] = {}

    def register(
        self,
        principal: Principal,
        transport: Transport,
        *,
        lifecycle: ConnectionLifecycle | None = None,
    ) -> Connection:
        now = self._clock.now()
        if principal.is_expired(now):
            raise AuthError("Token expired")
        connection = Connection(
            principal,
            transport,
            now=now,
            queue_size=self._send_queue_size,
            lifecycle=lifecycle,
        )
        self._connections[connection.id] = connection
        self._by_user.setdefault(principal.user_id, set()).add(connection.id)
        logger.debug(
            "WS registered: user=%s conn=%s (user_conns=%d)",
            principal.user_id,
            connection.id,
            len(self._by_user[principal.user_id]),
        )
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None
        ids = self._by_user.get(connection.user_id)
        if ids:
            ids.discard(connection_id)
            if not ids:
                del self._by_user[connection.user_id]
        connection.close()
        logger.debug("WS unregistered: user=%s conn=%s", connection.user_id, connection_id)
        return connection

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def connections_for(self, user_id: int) -> set[str]:
        return set(self._by_user.get(user_id, ()))

    def live_connections(self, user_id: int) -> list[Connection]:
        return [self._connections[cid] for cid in self._by_user.get(user_id, ())]

    def is_online(self, user_id: int) -> bool:
        return bool(self._by_user.get(user_id))

    def online_users(self) -> set[int]:
        return set(self._by_user)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
