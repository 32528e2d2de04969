from __future__ import annotations

from hr_chat.domain.entities.notification import Notification
from hr_chat.infrastructure.db.models.notification import NotificationModel


def model_to_entity(model: NotificationModel) -> Notification:
    return Notification(
        id=model.id,
        user_id=model.user_id,
        type=model.type,
        title=model.title,
        message=model.message,
        related_id=model.related_id,
        priority=model.priority,
        is_read=model.is_read,
        read_at=model.read_at,
        created_at=model.created_at,
    )


def entity_to_model(entity: Notification) -> NotificationModel:
    return NotificationModel(
        id=entity.id,
        user_id=entity.user_id,
        type=entity.type,
        title=entity.title,
        message=entity.message,
        related_id=entity.related_id,
        priority=entity.priority,
        is_read=entity.is_read,
        read_at=entity.read_at,
        created_at=entity.created_at,
    )
