"""Server-side connection lifecycle: handshake, heartbeat, disconnect."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from hr_chat.application.exceptions import AuthError, ConnectionClosed, TransportError
from hr_chat.application.ports.auth import TokenVerifier
from hr_chat.application.ports.clock import Clock, SystemClock
from hr_chat.application.ports.transport import Transport
from hr_chat.domain.value_objects.enums import ConnectionState
from hr_chat.infrastructure.ws.protocol import PING, encode
from hr_chat.realtime.connection import Connection
from hr_chat.realtime.lifecycle import ConnectionLifecycle
from hr_chat.realtime.membership import RoomMembership
from hr_chat.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

FrameHandler = Callable[[Connection, str], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]

CLOSE_HEARTBEAT_TIMEOUT = 4008
CLOSE_SEND_FAILED = 1011


class PresenceSupervisor:
    """Owns every connection from handshake to teardown.

    Each reconnect is a fresh session: rooms are never rejoined on the
    client's behalf.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        membership: RoomMembership,
        verifier: TokenVerifier,
        *,
        clock: Clock | None = None,
        heartbeat_interval: float = 25.0,
        heartbeat_timeout: float = 60.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._membership = membership
        self._verifier = verifier
        self._clock = clock or SystemClock()
        self._heartbeat_interval = heartbeat_interval
        self._heartbeat_timeout = heartbeat_timeout
        self._sleep = sleep

    async def handshake(self, token: str | None, transport: Transport) -> Connection:
        """Authenticate and register. Raises AuthError without registering anything."""
        lifecycle = ConnectionLifecycle()
        try:
            if not token:
                raise AuthError("No token provided")
            principal = await self._verifier.verify(token)
            lifecycle.transition(ConnectionState.AUTHENTICATED)
            connection = self._registry.register(principal, transport, lifecycle=lifecycle)
        except AuthError as exc:
            lifecycle.transition(ConnectionState.TERMINATED)
            logger.info("WS handshake rejected: %s", exc.detail)
            raise

        try:
            await transport.accept()
        except Exception:
            self._registry.unregister(connection.id)
            lifecycle.transition(ConnectionState.TERMINATED)
            raise
        lifecycle.transition(ConnectionState.ACTIVE)
        logger.info("WS connected: user=%s conn=%s", connection.user_id, connection.id)
        return connection

    async def serve(self, connection: Connection, handle: FrameHandler) -> None:
        """Run the read loop until the peer goes away, then tear down."""
        writer = asyncio.create_task(
            self._write_loop(connection), name=f"ws-writer-{connection.id}",
        )
        heartbeat = asyncio.create_task(
            self._heartbeat(connection), name=f"ws-heartbeat-{connection.id}",
        )
        reason = "closed"
        try:
            while True:
                raw = await connection.transport.receive_text()
                connection.touch(self._clock.now())
                await handle(connection, raw)
        except ConnectionClosed as exc:
            reason = exc.detail
        except Exception:
            logger.exception("WS error for connection %s", connection.id)
            reason = "error"
        finally:
            heartbeat.cancel()
            writer.cancel()
            await asyncio.gather(heartbeat, writer, return_exceptions=True)
            self.disconnect(connection.id, reason=reason)
            await connection.transport.close()

    def disconnect(self, connection_id: str, *, reason: str = "") -> bool:
        """Unregister a connection and drop its subscriptions. Idempotent."""
        connection = self._registry.unregister(connection_id)
        if connection is None:
            return False
        self._membership.drop_connection(connection_id)
        lifecycle = connection.lifecycle
        if lifecycle.can(ConnectionState.DISCONNECTED):
            lifecycle.transition(ConnectionState.DISCONNECTED)
        if lifecycle.can(ConnectionState.TERMINATED):
            lifecycle.transition(ConnectionState.TERMINATED)
        logger.info(
            "WS disconnected: user=%s conn=%s reason=%s",
            connection.user_id,
            connection_id,
            reason,
        )
        return True

    def is_alive(self, connection: Connection) -> bool:
        idle = (self._clock.now() - connection.last_seen).total_seconds()
        return idle <= self._heartbeat_timeout

    async def _heartbeat(self, connection: Connection) -> None:
        while True:
            await self._sleep(self._heartbeat_interval)
            if not self.is_alive(connection):
                logger.info(
                    "Heartbeat timeout: user=%s conn=%s", connection.user_id, connection.id,
                )
                await connection.transport.close(
                    code=CLOSE_HEARTBEAT_TIMEOUT, reason="Heartbeat timeout",
                )
                return
            try:
                connection.push(encode(PING, {}))
            except TransportError as exc:
                logger.info(
                    "Heartbeat undeliverable: user=%s conn=%s (%s)",
                    connection.user_id,
                    connection.id,
                    exc,
                )
                await connection.transport.close(
                    code=CLOSE_HEARTBEAT_TIMEOUT, reason="Heartbeat timeout",
                )
                return

    async def _write_loop(self, connection: Connection) -> None:
        try:
            await connection.drain()
        except TransportError as exc:
            logger.warning("Push to connection %s failed: %s", connection.id, exc)
            await connection.transport.close(code=CLOSE_SEND_FAILED, reason="Send failed")
