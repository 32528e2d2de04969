from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import ConnectionClosed, TransportError
from hr_chat.application.ports.transport import Transport
from hr_chat.realtime.lifecycle import ConnectionLifecycle

logger = logging.getLogger(__name__)


class Connection:
    """One live socket owned by one user.

    Outbound frames go through a bounded FIFO drained by a single writer
    task, so the order frames are pushed is the order the peer sees them.
    """

    def __init__(
        self,
        principal: Principal,
        transport: Transport,
        *,
        now: datetime,
        queue_size: int = 256,
        lifecycle: ConnectionLifecycle | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.principal = principal
        self.transport = transport
        self.lifecycle = lifecycle or ConnectionLifecycle()
        self.connected_at = now
        self.last_seen = now
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self._abort_task: asyncio.Task[None] | None = None

    @property
    def user_id(self) -> int:
        return self.principal.user_id

    @property
    def closed(self) -> bool:
        return self._closed

    def touch(self, now: datetime) -> None:
        self.last_seen = now

    def push(self, frame: str) -> None:
        if self._closed:
            raise ConnectionClosed(f"connection {self.id} is closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as exc:
            raise TransportError(f"send queue full for connection {self.id}") from exc

    async def drain(self) -> None:
        """Write queued frames until close(). Raises TransportError on a failed write."""
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            await self.transport.send_text(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass  # the writer is cancelled by its owner in that case

    def abort(self, code: int = 1011, reason: str = "") -> None:
        """Stop accepting frames and close the socket in the background."""
        if self._abort_task is not None:
            return
        self.close()
        self._abort_task = asyncio.get_running_loop().create_task(
            self.transport.close(code=code, reason=reason),
            name=f"ws-abort-{self.id}",
        )

    def __repr__(self) -> str:
        return f"<Connection {self.id} user={self.user_id} state={self.lifecycle.state}>"
