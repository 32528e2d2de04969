"""WebSocket message envelopes.

Every frame is ``{"kind": ..., "ref": ..., "payload": {...}}``. Inbound
frames are validated against the model registered for their ``kind``
before anything is dispatched.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from hr_chat.domain.entities.message import Message
from hr_chat.domain.entities.notification import Notification
from hr_chat.domain.value_objects.enums import MessageType

RECEIVE_MESSAGE = "receive-message"
RECEIVE_PRIVATE = "receive-private"
NEW_NOTIFICATION = "new-notification"
ACK = "ack"
ERROR = "error"
PING = "ping"
PONG = "pong"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GroupRef(_Payload):
    group_id: UUID = Field(alias="groupId")


class PrivateRef(_Payload):
    target_user_id: int = Field(alias="targetUserId")


class SendMessagePayload(_Payload):
    group_id: UUID = Field(alias="groupId")
    content: str | None = None
    type: MessageType = MessageType.TEXT
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")


class SendPrivatePayload(_Payload):
    receiver_id: int = Field(alias="receiverId")
    content: str | None = None


class MarkReadPayload(_Payload):
    group_id: UUID | None = Field(default=None, alias="groupId")
    user_id: int | None = Field(default=None, alias="userId")

    @model_validator(mode="after")
    def _exactly_one_target(self) -> MarkReadPayload:
        if (self.group_id is None) == (self.user_id is None):
            raise ValueError("Exactly one of groupId or userId is required")
        return self


class _Inbound(BaseModel):
    ref: str | None = None


class JoinGroup(_Inbound):
    kind: Literal["join-group"]
    payload: GroupRef


class LeaveGroup(_Inbound):
    kind: Literal["leave-group"]
    payload: GroupRef


class JoinPrivate(_Inbound):
    kind: Literal["join-private"]
    payload: PrivateRef


class LeavePrivate(_Inbound):
    kind: Literal["leave-private"]
    payload: PrivateRef


class SendMessage(_Inbound):
    kind: Literal["send-message"]
    payload: SendMessagePayload


class SendPrivate(_Inbound):
    kind: Literal["send-private"]
    payload: SendPrivatePayload


class MarkRead(_Inbound):
    kind: Literal["mark-read"]
    payload: MarkReadPayload


class Ping(_Inbound):
    kind: Literal["ping"]
    payload: dict[str, Any] = {}


class Pong(_Inbound):
    kind: Literal["pong"]
    payload: dict[str, Any] = {}


WsInbound = Annotated[
    Union[
        JoinGroup,
        LeaveGroup,
        JoinPrivate,
        LeavePrivate,
        SendMessage,
        SendPrivate,
        MarkRead,
        Ping,
        Pong,
    ],
    Field(discriminator="kind"),
]

_inbound_adapter: TypeAdapter[WsInbound] = TypeAdapter(WsInbound)


def parse_inbound(raw: str) -> WsInbound:
    """Raises pydantic.ValidationError for unknown kinds or bad payloads."""
    return _inbound_adapter.validate_json(raw)


class WsOutbound(BaseModel):
    """Server → Client."""

    kind: str
    ref: str | None = None
    payload: dict[str, Any] = {}


def encode(kind: str, payload: dict[str, Any], ref: str | None = None) -> str:
    return WsOutbound(kind=kind, ref=ref, payload=payload).model_dump_json()


def event_for(message: Message) -> str:
    return RECEIVE_MESSAGE if message.group_id is not None else RECEIVE_PRIVATE


def message_to_wire(message: Message) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "type": message.type,
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }
    if message.group_id is not None:
        data["group_id"] = str(message.group_id)
        data["file_url"] = message.file_url
        data["file_name"] = message.file_name
    else:
        data["receiver_id"] = message.receiver_id
    return data


def notification_to_wire(notification: Notification) -> dict[str, Any]:
    return {
        "id": str(notification.id),
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_id": notification.related_id,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }
