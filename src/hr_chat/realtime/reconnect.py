"""Client-side reconnection with bounded, growing backoff.

Used by Python clients of the chat socket (bots, integration tooling).
Timing comes from an injected ``sleep`` so the loop runs without real
timers under test.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from hr_chat.application.exceptions import AuthError
from hr_chat.config import Settings
from hr_chat.domain.value_objects.enums import ConnectionState
from hr_chat.realtime.lifecycle import ConnectionLifecycle, OnStateChange

logger = logging.getLogger(__name__)

Connect = Callable[[], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = 10
    base_delay: float = 1.5
    multiplier: float = 2.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Delay before the given 1-based attempt."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    @classmethod
    def from_settings(cls, config: Settings) -> RetryPolicy:
        return cls(
            max_attempts=config.RECONNECT_MAX_ATTEMPTS,
            base_delay=config.RECONNECT_BASE_DELAY,
            max_delay=config.RECONNECT_MAX_DELAY,
        )


class ReconnectionSupervisor:
    """Drives ``connect`` through the connection state machine.

    ``connect`` opens a fresh session and returns once it is active. It
    raises AuthError when the credentials are rejected, which ends the
    loop for good; any other exception counts as a failed attempt.
    Rooms are not rejoined here; callers rejoin after every reconnect.
    """

    def __init__(
        self,
        connect: Connect,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_state_change: OnStateChange | None = None,
    ) -> None:
        self._connect = connect
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.lifecycle = ConnectionLifecycle(on_change=on_state_change)
        self.attempts = 0
        self.offline = False
        self.last_error: BaseException | None = None

    @property
    def state(self) -> ConnectionState:
        return self.lifecycle.state

    async def start(self) -> bool:
        """First connect. A failure falls straight into the retry loop."""
        try:
            await self._connect()
        except AuthError as exc:
            self.last_error = exc
            self.lifecycle.transition(ConnectionState.TERMINATED)
            return False
        except Exception as exc:
            self.last_error = exc
            logger.info("Initial connect failed: %s", exc)
            self.lifecycle.transition(ConnectionState.DISCONNECTED)
            return await self._retry()
        self.lifecycle.transition(ConnectionState.AUTHENTICATED)
        self.lifecycle.transition(ConnectionState.ACTIVE)
        return True

    async def connection_lost(self) -> bool:
        """Call when an active session drops. Returns True once back online."""
        if self.state != ConnectionState.ACTIVE:
            return False
        self.lifecycle.transition(ConnectionState.DISCONNECTED)
        return await self._retry()

    def stop(self) -> None:
        """Graceful shutdown; no further reconnects."""
        if self.state == ConnectionState.ACTIVE:
            self.lifecycle.transition(ConnectionState.DISCONNECTED)
        if self.lifecycle.can(ConnectionState.TERMINATED):
            self.lifecycle.transition(ConnectionState.TERMINATED)

    async def _retry(self) -> bool:
        self.attempts = 0
        while self.attempts < self.policy.max_attempts:
            if self.state == ConnectionState.TERMINATED:
                return False
            self.attempts += 1
            self.lifecycle.transition(ConnectionState.RECONNECTING)
            await self._sleep(self.policy.delay_for(self.attempts))
            try:
                await self._connect()
            except AuthError as exc:
                self.last_error = exc
                logger.warning("Reconnect rejected: %s", exc.detail)
                self.lifecycle.transition(ConnectionState.TERMINATED)
                return False
            except Exception as exc:
                self.last_error = exc
                logger.info(
                    "Reconnect attempt %d/%d failed: %s",
                    self.attempts,
                    self.policy.max_attempts,
                    exc,
                )
                self.lifecycle.transition(ConnectionState.DISCONNECTED)
                continue
            self.lifecycle.transition(ConnectionState.ACTIVE)
            self.offline = False
            self.last_error = None
            logger.info("Reconnected after %d attempt(s)", self.attempts)
            return True

        self.offline = True
        if self.lifecycle.can(ConnectionState.TERMINATED):
            self.lifecycle.transition(ConnectionState.TERMINATED)
        logger.warning("Giving up after %d reconnect attempts", self.attempts)
        return False
