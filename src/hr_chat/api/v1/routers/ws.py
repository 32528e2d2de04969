from __future__ import annotations

import logging
from typing import Any

import pydantic
from fastapi import APIRouter, Query, WebSocket

from hr_chat.application.dto.message import OutgoingMessage
from hr_chat.application.exceptions import AppError, AuthError, TransportError, ValidationError
from hr_chat.domain.value_objects.room import RoomKey
from hr_chat.infrastructure.ws.protocol import (
    ACK,
    ERROR,
    PONG,
    JoinGroup,
    JoinPrivate,
    LeaveGroup,
    LeavePrivate,
    MarkRead,
    Ping,
    SendMessage,
    SendPrivate,
    WsInbound,
    encode,
    parse_inbound,
)
from hr_chat.infrastructure.ws.transport import WebSocketTransport
from hr_chat.realtime.connection import Connection
from hr_chat.realtime.hub import ChatHub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

CLOSE_AUTH_FAILED = 4001
SERVER_ERROR = "error"


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
) -> None:
    hub: ChatHub = websocket.app.state.hub
    transport = WebSocketTransport(websocket)
    try:
        connection = await hub.supervisor.handshake(token, transport)
    except AuthError as exc:
        await websocket.close(code=CLOSE_AUTH_FAILED, reason=exc.detail)
        return

    async def _handle(conn: Connection, raw: str) -> None:
        await _dispatch(hub, conn, raw)

    await hub.supervisor.serve(connection, _handle)


def _reply(connection: Connection, kind: str, payload: dict[str, Any], ref: str | None = None) -> None:
    try:
        connection.push(encode(kind, payload, ref))
    except TransportError as exc:
        logger.warning("Reply to connection %s dropped: %s", connection.id, exc)
        connection.abort(code=1013, reason="Client too slow")


def _fail(connection: Connection, envelope: WsInbound, message: str, code: str) -> None:
    failure = {"success": False, "message": message, "code": code}
    if envelope.ref is not None:
        _reply(connection, ACK, failure, envelope.ref)
    else:
        _reply(connection, ERROR, {"kind": envelope.kind, **failure})


async def _dispatch(hub: ChatHub, connection: Connection, raw: str) -> None:
    try:
        envelope = parse_inbound(raw)
    except pydantic.ValidationError as exc:
        _reply(
            connection,
            ERROR,
            {"code": "invalid_payload", "message": exc.errors(include_url=False)[0]["msg"]},
        )
        return

    try:
        result = await _handle_envelope(hub, connection, envelope)
    except AppError as exc:
        logger.info(
            "WS %s from user %s failed: %s", envelope.kind, connection.user_id, exc.detail,
        )
        _fail(connection, envelope, exc.detail, exc.code)
        return
    except Exception:
        logger.exception("WS %s from user %s crashed", envelope.kind, connection.user_id)
        _fail(connection, envelope, "Server error", SERVER_ERROR)
        return

    if envelope.ref is not None and result is not None:
        _reply(connection, ACK, {"success": True, **result}, envelope.ref)


async def _handle_envelope(
    hub: ChatHub,
    connection: Connection,
    envelope: WsInbound,
) -> dict[str, Any] | None:
    """Run one command. Returns the ack body, or None when nothing is acked."""
    user_id = connection.user_id

    if isinstance(envelope, JoinGroup):
        joined = await hub.membership.join_group(
            connection.id, user_id, envelope.payload.group_id,
        )
        return {"message": joined.message, "room": str(joined.room_key)}

    if isinstance(envelope, LeaveGroup):
        await hub.membership.leave(connection.id, RoomKey.group(envelope.payload.group_id))
        return {}

    if isinstance(envelope, JoinPrivate):
        joined = await hub.membership.join_private(
            connection.id, user_id, envelope.payload.target_user_id,
        )
        return {"room": str(joined.room_key)}

    if isinstance(envelope, LeavePrivate):
        await hub.membership.leave(
            connection.id, _private_room(user_id, envelope.payload.target_user_id),
        )
        return {}

    if isinstance(envelope, SendMessage):
        p = envelope.payload
        message = await hub.router.send(
            connection.id,
            user_id,
            RoomKey.group(p.group_id),
            OutgoingMessage(
                content=p.content,
                type=p.type,
                file_url=p.file_url,
                file_name=p.file_name,
            ),
        )
        return {"id": message.id}

    if isinstance(envelope, SendPrivate):
        message = await hub.router.send(
            connection.id,
            user_id,
            _private_room(user_id, envelope.payload.receiver_id),
            OutgoingMessage(content=envelope.payload.content),
        )
        return {"id": message.id}

    if isinstance(envelope, MarkRead):
        p = envelope.payload
        if p.group_id is not None:
            room_key = RoomKey.group(p.group_id)
        else:
            room_key = _private_room(user_id, p.user_id)  # type: ignore[arg-type]
        await hub.router.clear_unread(user_id, room_key)
        return {}

    if isinstance(envelope, Ping):
        _reply(connection, PONG, {}, envelope.ref)
    # pong only refreshes liveness, which the read loop already did.
    return None


def _private_room(user_id: int, other_user_id: int) -> RoomKey:
    try:
        return RoomKey.private(user_id, other_user_id)
    except ValueError as exc:
        raise ValidationError("Cannot open a private conversation with yourself") from exc
