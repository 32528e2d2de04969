from __future__ import annotations

import pytest

from hr_chat.application.exceptions import AuthError
from hr_chat.config import settings
from hr_chat.domain.value_objects.enums import ConnectionState
from hr_chat.realtime.reconnect import ReconnectionSupervisor, RetryPolicy


class ScriptedConnect:
    """Fails with the queued errors in order, then succeeds."""

    def __init__(self, *outcomes: Exception | None) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if outcome is not None:
                raise outcome


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def test_delays_grow_and_are_capped():
    policy = RetryPolicy(max_attempts=6, base_delay=1.5, multiplier=2.0, max_delay=10.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [1.5, 3.0, 6.0, 10.0, 10.0]


def test_policy_reads_settings():
    policy = RetryPolicy.from_settings(settings)
    assert policy.max_attempts == settings.RECONNECT_MAX_ATTEMPTS
    assert policy.base_delay == settings.RECONNECT_BASE_DELAY


@pytest.mark.asyncio
async def test_start_goes_active():
    supervisor = ReconnectionSupervisor(ScriptedConnect(), sleep=RecordingSleep())
    assert await supervisor.start() is True
    assert supervisor.state == ConnectionState.ACTIVE


@pytest.mark.asyncio
async def test_reconnects_after_transient_failures():
    connect = ScriptedConnect(None, OSError("refused"), OSError("refused"), None)
    sleep = RecordingSleep()
    changes = []
    supervisor = ReconnectionSupervisor(
        connect,
        RetryPolicy(max_attempts=5, base_delay=1.0),
        sleep=sleep,
        on_state_change=lambda old, new: changes.append(new),
    )
    await supervisor.start()

    assert await supervisor.connection_lost() is True

    assert supervisor.state == ConnectionState.ACTIVE
    assert supervisor.attempts == 3
    assert supervisor.offline is False
    assert sleep.delays == [1.0, 2.0, 4.0]
    assert changes == [
        ConnectionState.AUTHENTICATED,
        ConnectionState.ACTIVE,
        ConnectionState.DISCONNECTED,
        ConnectionState.RECONNECTING,
        ConnectionState.DISCONNECTED,
        ConnectionState.RECONNECTING,
        ConnectionState.DISCONNECTED,
        ConnectionState.RECONNECTING,
        ConnectionState.ACTIVE,
    ]


@pytest.mark.asyncio
async def test_gives_up_and_goes_offline_after_budget():
    connect = ScriptedConnect(None, *[OSError("down")] * 10)
    sleep = RecordingSleep()
    supervisor = ReconnectionSupervisor(connect, RetryPolicy(max_attempts=3), sleep=sleep)
    await supervisor.start()

    assert await supervisor.connection_lost() is False

    assert supervisor.state == ConnectionState.TERMINATED
    assert supervisor.offline is True
    assert connect.calls == 4
    assert len(sleep.delays) == 3
    assert isinstance(supervisor.last_error, OSError)
    # No automatic retries once offline.
    assert await supervisor.connection_lost() is False
    assert connect.calls == 4


@pytest.mark.asyncio
async def test_rejected_credentials_stop_retrying():
    connect = ScriptedConnect(None, OSError("blip"), AuthError("Token expired"))
    supervisor = ReconnectionSupervisor(connect, RetryPolicy(max_attempts=5), sleep=RecordingSleep())
    await supervisor.start()

    assert await supervisor.connection_lost() is False

    assert supervisor.state == ConnectionState.TERMINATED
    assert connect.calls == 3
    assert supervisor.offline is False


@pytest.mark.asyncio
async def test_initial_auth_failure_terminates():
    supervisor = ReconnectionSupervisor(
        ScriptedConnect(AuthError("Invalid token")), sleep=RecordingSleep(),
    )
    assert await supervisor.start() is False
    assert supervisor.state == ConnectionState.TERMINATED


@pytest.mark.asyncio
async def test_initial_failure_falls_into_retry():
    connect = ScriptedConnect(OSError("no route"), None)
    sleep = RecordingSleep()
    supervisor = ReconnectionSupervisor(connect, RetryPolicy(base_delay=2.0), sleep=sleep)

    assert await supervisor.start() is True
    assert supervisor.state == ConnectionState.ACTIVE
    assert sleep.delays == [2.0]


@pytest.mark.asyncio
async def test_stop_is_terminal():
    connect = ScriptedConnect()
    supervisor = ReconnectionSupervisor(connect, sleep=RecordingSleep())
    await supervisor.start()

    supervisor.stop()

    assert supervisor.state == ConnectionState.TERMINATED
    assert await supervisor.connection_lost() is False
    assert connect.calls == 1
