import itertools
import uuid

import pytest

from app.core.errors import PermissionDenied, ResourceNotFound
from app.models.household import Role
from app.services.access import (
    role_rank,
    role_satisfies,
    require_household_access,
    require_kitchen_access,
)

ORDERED_ROLES = [Role.VIEWER, Role.MEMBER, Role.ADMIN, Role.OWNER]


def test_role_ranks_are_totally_ordered():
    assert [role_rank(r) for r in ORDERED_ROLES] == [0, 1, 2, 3]


@pytest.mark.parametrize("held, required", itertools.product(ORDERED_ROLES, repeat=2))
def test_role_satisfies_follows_hierarchy(held, required):
    expected = ORDERED_ROLES.index(held) >= ORDERED_ROLES.index(required)
    assert role_satisfies(held, required) is expected


def test_role_satisfies_accepts_plain_strings():
    assert role_satisfies("ADMIN", "MEMBER")
    assert not role_satisfies("VIEWER", "MEMBER")


@pytest.mark.asyncio
@pytest.mark.parametrize("held, required", [
    (held, required) for held, required in itertools.product(ORDERED_ROLES, repeat=2)
    if ORDERED_ROLES.index(held) >= ORDERED_ROLES.index(required)
])
async def test_sufficient_role_is_granted(world, held, required):
    membership = await require_household_access(world.users[held].id, world.household.id, required)
    assert membership.role == held
    assert membership.user_id == world.users[held].id


@pytest.mark.asyncio
async def test_insufficient_role_is_denied(world):
    with pytest.raises(PermissionDenied):
        await require_household_access(world.viewer.id, world.household.id, Role.MEMBER)
    with pytest.raises(PermissionDenied):
        await require_household_access(world.admin.id, world.household.id, Role.OWNER)


@pytest.mark.asyncio
async def test_non_member_is_denied(world, outsider):
    with pytest.raises(PermissionDenied):
        await require_household_access(outsider.id, world.household.id)


@pytest.mark.asyncio
async def test_missing_household_is_not_found_rather_than_denied(world):
    with pytest.raises(ResourceNotFound):
        await require_household_access(world.owner.id, uuid.uuid4(), Role.VIEWER)


@pytest.mark.asyncio
async def test_kitchen_access_follows_owning_household(world):
    membership = await require_kitchen_access(world.member.id, world.kitchen.id, Role.MEMBER)
    assert membership.household_id == world.household.id

    with pytest.raises(PermissionDenied):
        await require_kitchen_access(world.viewer.id, world.kitchen.id, Role.MEMBER)


@pytest.mark.asyncio
async def test_missing_kitchen_is_not_found(world):
    with pytest.raises(ResourceNotFound) as excinfo:
        await require_kitchen_access(world.owner.id, uuid.uuid4())
    assert excinfo.value.resource == "Kitchen"
