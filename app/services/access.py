from typing import Union
from uuid import UUID

from app.core.errors import PermissionDenied, ResourceNotFound
from app.models.household import Household, HouseholdMember, Kitchen, Role

# Role hierarchy: owner > admin > member > viewer
ROLE_HIERARCHY = {
    Role.VIEWER: 0,
    Role.MEMBER: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}


def role_rank(role: Union[Role, str]) -> int:
    return ROLE_HIERARCHY[Role(role)]


def role_satisfies(role: Union[Role, str], min_role: Union[Role, str]) -> bool:
    """True if `role` is at least as privileged as `min_role`."""
    return role_rank(role) >= role_rank(min_role)


async def require_household_access(
    user_id: Union[UUID, str],
    household_id: Union[UUID, str],
    min_role: Role = Role.VIEWER,
) -> HouseholdMember:
    """
    Returns the caller's membership in the household.

    Raises ResourceNotFound if the household does not exist, and
    PermissionDenied if the caller is not a member or their role ranks
    below `min_role`. Reads only; call it before touching any
    household-scoped data.
    """
    if not await Household.exists(id=household_id):
        raise ResourceNotFound("Household")

    membership = await HouseholdMember.get_or_none(user_id=user_id, household_id=household_id)
    if not membership:
        raise PermissionDenied("household access")

    if not role_satisfies(membership.role, min_role):
        raise PermissionDenied(f"{Role(min_role).value} role access")

    return membership


async def require_kitchen_access(
    user_id: Union[UUID, str],
    kitchen_id: Union[UUID, str],
    min_role: Role = Role.VIEWER,
) -> HouseholdMember:
    """Kitchens have no membership of their own; access follows the owning household."""
    kitchen = await Kitchen.get_or_none(id=kitchen_id)
    if not kitchen:
        raise ResourceNotFound("Kitchen")

    return await require_household_access(user_id, kitchen.household_id, min_role)
