from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    """One live bidirectional socket, as seen by the realtime core.

    ``receive_text`` raises ConnectionClosed once the peer is gone and
    ``send_text`` raises TransportError on any write failure.
    """

    async def accept(self) -> None: ...

    async def receive_text(self) -> str: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...
