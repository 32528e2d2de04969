from __future__ import annotations

from uuid import UUID

from hr_chat.application.dto.principal import Principal
from hr_chat.application.policies.permissions import assert_group_member
from hr_chat.application.uow import UnitOfWork
from hr_chat.domain.entities.group import Group
from hr_chat.domain.entities.user import User


async def get_group(
    group_id: UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> tuple[Group, list[User]]:
    """Group metadata plus the roster, for members only."""
    group = assert_group_member(principal, await uow.groups.get_by_id(group_id))
    members = await uow.users.list_by_ids(sorted(group.member_ids))
    return group, members


async def require_membership(group_id: UUID, principal: Principal, uow: UnitOfWork) -> Group:
    return assert_group_member(principal, await uow.groups.get_by_id(group_id))
