"""Adapts a Starlette WebSocket to the realtime Transport port."""
from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from hr_chat.application.exceptions import ConnectionClosed, TransportError

logger = logging.getLogger(__name__)


class WebSocketTransport:
    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket

    async def accept(self) -> None:
        await self._ws.accept()

    async def receive_text(self) -> str:
        try:
            return await self._ws.receive_text()
        except WebSocketDisconnect as exc:
            raise ConnectionClosed(f"peer closed (code={exc.code})") from exc
        except RuntimeError as exc:
            # Raised by Starlette once the socket was closed from our side.
            raise ConnectionClosed(str(exc)) from exc

    async def send_text(self, data: str) -> None:
        try:
            await self._ws.send_text(data)
        except Exception as exc:
            raise TransportError(f"send failed: {exc}") from exc

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._ws.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self._ws.close(code=code, reason=reason)
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("WS already closed", exc_info=True)
