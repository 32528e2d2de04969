from __future__ import annotations

from hr_chat.application.dto.principal import Principal
from hr_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from hr_chat.domain.entities.group import Group
from hr_chat.domain.entities.user import User


def assert_group_member(principal: Principal, group: Group | None) -> Group:
    """Raise if the group doesn't exist or the caller is not on its roster."""
    if group is None:
        raise NotFoundError("Group not found")
    if not group.has_member(principal.user_id):
        raise ForbiddenError("Access denied: not a member of this group")
    return group


def assert_private_peer(principal: Principal, other_user_id: int, other: User | None) -> User:
    if other_user_id == principal.user_id:
        raise ValidationError("Invalid user ID")
    if other is None:
        raise NotFoundError("User not found")
    return other
