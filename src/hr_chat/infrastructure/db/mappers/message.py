from __future__ import annotations

from hr_chat.domain.entities.message import Message
from hr_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        room_key=model.room_key,
        group_id=model.group_id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        type=model.type,
        content=model.content,
        file_url=model.file_url,
        file_name=model.file_name,
        created_at=model.created_at,
        sender_name=model.sender.name if model.sender is not None else None,
    )
