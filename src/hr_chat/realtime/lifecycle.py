"""Connection lifecycle state machine shared by the server and the client.

    Connecting -> Authenticated -> Active -> Disconnected
    Disconnected -> Reconnecting -> Active | Disconnected | Terminated
    Disconnected -> Terminated
"""
from __future__ import annotations

import logging
from typing import Callable

from hr_chat.domain.value_objects.enums import ConnectionState

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset({
        ConnectionState.AUTHENTICATED,
        ConnectionState.DISCONNECTED,
        ConnectionState.TERMINATED,
    }),
    ConnectionState.AUTHENTICATED: frozenset({
        ConnectionState.ACTIVE,
        ConnectionState.TERMINATED,
    }),
    ConnectionState.ACTIVE: frozenset({ConnectionState.DISCONNECTED}),
    ConnectionState.DISCONNECTED: frozenset({
        ConnectionState.RECONNECTING,
        ConnectionState.TERMINATED,
    }),
    ConnectionState.RECONNECTING: frozenset({
        ConnectionState.ACTIVE,
        ConnectionState.DISCONNECTED,
        ConnectionState.TERMINATED,
    }),
    ConnectionState.TERMINATED: frozenset(),
}

OnStateChange = Callable[[ConnectionState, ConnectionState], None]


class InvalidTransition(RuntimeError):
    pass


class ConnectionLifecycle:
    def __init__(
        self,
        initial: ConnectionState = ConnectionState.CONNECTING,
        on_change: OnStateChange | None = None,
    ) -> None:
        self._state = initial
        self._on_change = on_change
        self.history: list[ConnectionState] = [initial]

    @property
    def state(self) -> ConnectionState:
        return self._state

    def can(self, target: ConnectionState) -> bool:
        return target in _TRANSITIONS[self._state]

    def transition(self, target: ConnectionState) -> None:
        if not self.can(target):
            raise InvalidTransition(f"{self._state} -> {target}")
        previous, self._state = self._state, target
        self.history.append(target)
        logger.debug("Connection state %s -> %s", previous, target)
        if self._on_change is not None:
            self._on_change(previous, target)
