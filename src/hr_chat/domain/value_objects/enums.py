from __future__ import annotations

from enum import StrEnum


class MessageType(StrEnum):
    TEXT = "text"
    FILE = "file"


class RoomKind(StrEnum):
    GROUP = "group"
    PRIVATE = "private"


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


class NotificationType(StrEnum):
    GROUP_MESSAGE = "GROUP_MESSAGE"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    ATTENDANCE_REMINDER = "ATTENDANCE_REMINDER"
    STANDUP_REMINDER = "STANDUP_REMINDER"
    CALENDAR_EVENT = "CALENDAR_EVENT"
    CHAT = "chat"
    TASK = "task"
    LEAVE = "leave"
    ATTENDANCE = "attendance"
    CALENDAR = "calendar"


class NotificationPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
