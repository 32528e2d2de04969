"""Import all models so Alembic can discover them via Base.metadata."""
from hr_chat.infrastructure.db.models.group import GroupMemberModel, GroupModel
from hr_chat.infrastructure.db.models.message import MessageModel
from hr_chat.infrastructure.db.models.notification import NotificationModel
from hr_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "GroupMemberModel",
    "GroupModel",
    "MessageModel",
    "NotificationModel",
    "UserModel",
]
