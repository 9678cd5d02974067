import pytest

from app.core.errors import ConflictError, PermissionDenied, ResourceNotFound, ValidationFailure
from app.models.household import Household, HouseholdMember, Kitchen, Role, User
from app.services import household_service


@pytest.mark.asyncio
async def test_creator_becomes_owner(db):
    user = await User.create(email="chef@example.com")

    household = await household_service.create_household(user.id, "Flat 4B")

    membership = await HouseholdMember.get(user_id=user.id, household_id=household.id)
    assert membership.role == Role.OWNER
    assert len(household.invite_code) == 6
    assert [h.id for h in await household_service.list_households(user.id)] == [household.id]


@pytest.mark.asyncio
async def test_admin_invites_member(world, outsider):
    member = await household_service.invite_member(world.admin.id, world.household.id, outsider.email, Role.MEMBER)
    assert member.role == Role.MEMBER

    with pytest.raises(ConflictError):
        await household_service.invite_member(world.admin.id, world.household.id, outsider.email)


@pytest.mark.asyncio
async def test_member_cannot_invite(world, outsider):
    with pytest.raises(PermissionDenied):
        await household_service.invite_member(world.member.id, world.household.id, outsider.email)
    assert not await HouseholdMember.exists(user_id=outsider.id)


@pytest.mark.asyncio
async def test_invite_unknown_email_fails(world):
    with pytest.raises(ValidationFailure):
        await household_service.invite_member(world.owner.id, world.household.id, "nobody@example.com")


@pytest.mark.asyncio
async def test_only_owner_grants_owner(world):
    with pytest.raises(PermissionDenied):
        await household_service.change_member_role(world.admin.id, world.household.id, world.member.id, Role.OWNER)

    promoted = await household_service.change_member_role(world.owner.id, world.household.id, world.member.id, Role.OWNER)
    assert promoted.role == Role.OWNER


@pytest.mark.asyncio
async def test_last_owner_cannot_be_demoted_or_leave(world):
    with pytest.raises(ValidationFailure):
        await household_service.change_member_role(world.owner.id, world.household.id, world.owner.id, Role.ADMIN)
    with pytest.raises(ValidationFailure):
        await household_service.remove_member(world.owner.id, world.household.id, world.owner.id)

    assert await HouseholdMember.filter(household_id=world.household.id, role=Role.OWNER).count() == 1


@pytest.mark.asyncio
async def test_member_can_leave(world):
    await household_service.remove_member(world.member.id, world.household.id, world.member.id)
    assert not await HouseholdMember.exists(user_id=world.member.id, household_id=world.household.id)


@pytest.mark.asyncio
async def test_join_by_invite_code(world, outsider):
    member = await household_service.join_household(outsider.id, "abc123")
    assert member.role == Role.MEMBER

    with pytest.raises(ResourceNotFound):
        await household_service.join_household(outsider.id, "ZZZZZZ")


@pytest.mark.asyncio
async def test_delete_household_requires_owner(world):
    with pytest.raises(PermissionDenied):
        await household_service.delete_household(world.admin.id, world.household.id)

    await household_service.delete_household(world.owner.id, world.household.id)
    assert not await Household.exists(id=world.household.id)
    assert not await Kitchen.exists(id=world.kitchen.id)


@pytest.mark.asyncio
async def test_last_kitchen_cannot_be_deleted(world):
    with pytest.raises(ValidationFailure):
        await household_service.delete_kitchen(world.admin.id, world.kitchen.id)

    extra = await household_service.create_kitchen(world.member.id, world.household.id, {"name": "Garage Freezer"})
    with pytest.raises(PermissionDenied):
        await household_service.delete_kitchen(world.member.id, extra.id)

    await household_service.delete_kitchen(world.admin.id, extra.id)
    assert await Kitchen.filter(household_id=world.household.id).count() == 1
