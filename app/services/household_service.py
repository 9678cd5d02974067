import logging
import secrets
import string
from typing import Any, Dict, List

from tortoise.transactions import in_transaction

from app.core.errors import ConflictError, PermissionDenied, ResourceNotFound, ValidationFailure, handle_db_error
from app.models.household import Household, HouseholdMember, Kitchen, Role, User
from app.services.access import require_household_access, require_kitchen_access

log = logging.getLogger("household_service")

INVITE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: int = 6) -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


async def _owner_count(household_id) -> int:
    return await HouseholdMember.filter(household_id=household_id, role=Role.OWNER).count()


# ----------- Households -----------

async def list_households(user_id) -> List[Household]:
    return await Household.filter(members__user_id=user_id).distinct().order_by("created_at")


async def get_household(user_id, household_id) -> Household:
    await require_household_access(user_id, household_id)
    return await Household.get(id=household_id)


async def create_household(user_id, name: str, description: str = None) -> Household:
    """Creates the household together with its creator's OWNER membership."""
    try:
        async with in_transaction() as conn:
            household = await Household.create(
                name=name,
                description=description,
                invite_code=generate_invite_code(),
                created_by_id=user_id,
                using_db=conn,
            )
            await HouseholdMember.create(user_id=user_id, household=household, role=Role.OWNER, using_db=conn)
    except Exception as e:
        log.error(f"Error creating household for user {user_id}: {e}")
        raise handle_db_error(e, "household creation")

    log.info(f"Household created: {household.id} by user {user_id}")
    return household


async def update_household(user_id, household_id, data: Dict[str, Any]) -> Household:
    await require_household_access(user_id, household_id, Role.ADMIN)
    household = await Household.get(id=household_id)
    household.update_from_dict(data)
    await household.save()
    return household


async def delete_household(user_id, household_id) -> None:
    await require_household_access(user_id, household_id, Role.OWNER)
    await Household.filter(id=household_id).delete()
    log.info(f"Household {household_id} deleted by user {user_id}")


# ----------- Membership -----------

async def list_members(user_id, household_id) -> List[HouseholdMember]:
    await require_household_access(user_id, household_id)
    return await HouseholdMember.filter(household_id=household_id).prefetch_related("user").order_by("joined_at")


async def invite_member(user_id, household_id, email: str, role: Role = Role.MEMBER) -> HouseholdMember:
    actor = await require_household_access(user_id, household_id, Role.ADMIN)
    if Role(role) == Role.OWNER and actor.role != Role.OWNER:
        raise PermissionDenied("granting OWNER role")

    invited = await User.get_or_none(email=email)
    if not invited:
        raise ValidationFailure("User with this email does not exist", field="email")

    if await HouseholdMember.exists(user_id=invited.id, household_id=household_id):
        raise ConflictError(f"User {invited.id} already in household {household_id}",
                            "User is already a member of this household")

    return await HouseholdMember.create(user=invited, household_id=household_id, role=role)


async def join_household(user_id, invite_code: str) -> HouseholdMember:
    household = await Household.get_or_none(invite_code=invite_code.strip().upper())
    if not household:
        raise ResourceNotFound("Household")
    if await HouseholdMember.exists(user_id=user_id, household_id=household.id):
        raise ConflictError(f"User {user_id} already in household {household.id}",
                            "You are already a member of this household")
    return await HouseholdMember.create(user_id=user_id, household=household, role=Role.MEMBER)


async def _get_member(household_id, member_user_id) -> HouseholdMember:
    member = await HouseholdMember.get_or_none(household_id=household_id, user_id=member_user_id)
    if not member:
        raise ResourceNotFound("Member")
    return member


async def change_member_role(user_id, household_id, member_user_id, new_role: Role) -> HouseholdMember:
    """
    ADMINs manage non-owner roles; only an OWNER may grant or revoke OWNER.
    The last OWNER of a household cannot be demoted.
    """
    actor = await require_household_access(user_id, household_id, Role.ADMIN)
    member = await _get_member(household_id, member_user_id)
    new_role = Role(new_role)

    touches_owner = Role.OWNER in (new_role, member.role)
    if touches_owner and actor.role != Role.OWNER:
        raise PermissionDenied("changing OWNER role")

    if member.role == Role.OWNER and new_role != Role.OWNER and await _owner_count(household_id) <= 1:
        raise ValidationFailure("A household must keep at least one owner", field="role")

    member.role = new_role
    await member.save(update_fields=["role"])
    return member


async def remove_member(user_id, household_id, member_user_id) -> None:
    """Removes another member (ADMIN), or the caller themselves (leaving)."""
    if str(user_id) == str(member_user_id):
        actor = await require_household_access(user_id, household_id)
        member = actor
    else:
        actor = await require_household_access(user_id, household_id, Role.ADMIN)
        member = await _get_member(household_id, member_user_id)
        if member.role == Role.OWNER and actor.role != Role.OWNER:
            raise PermissionDenied("removing an OWNER")

    if member.role == Role.OWNER and await _owner_count(household_id) <= 1:
        raise ValidationFailure("The last owner cannot leave the household", field="user_id")

    await member.delete()


# ----------- Kitchens -----------

async def list_kitchens(user_id, household_id) -> List[Kitchen]:
    await require_household_access(user_id, household_id)
    return await Kitchen.filter(household_id=household_id).order_by("created_at")


async def get_kitchen(user_id, kitchen_id) -> Kitchen:
    await require_kitchen_access(user_id, kitchen_id)
    return await Kitchen.get(id=kitchen_id)


async def create_kitchen(user_id, household_id, data: Dict[str, Any]) -> Kitchen:
    await require_household_access(user_id, household_id, Role.MEMBER)
    return await Kitchen.create(household_id=household_id, **data)


async def update_kitchen(user_id, kitchen_id, data: Dict[str, Any]) -> Kitchen:
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    kitchen = await Kitchen.get(id=kitchen_id)
    # A kitchen never moves between households
    data.pop("household_id", None)
    kitchen.update_from_dict(data)
    await kitchen.save()
    return kitchen


async def delete_kitchen(user_id, kitchen_id) -> None:
    await require_kitchen_access(user_id, kitchen_id, Role.ADMIN)
    kitchen = await Kitchen.get(id=kitchen_id)
    if await Kitchen.filter(household_id=kitchen.household_id).count() <= 1:
        raise ValidationFailure("Cannot delete the last kitchen in a household")
    await kitchen.delete()
