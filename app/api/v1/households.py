import logging
from fastapi import APIRouter, Depends, status
from uuid import UUID

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.household import (
    HouseholdRequest,
    HouseholdUpdate,
    HouseholdResponse,
    InviteRequest,
    JoinRequest,
    RoleUpdate,
    MemberResponse,
    KitchenRequest,
    KitchenResponse,
)
from app.schemas.response import SuccessResponse
from app.services import household_service

router = APIRouter()
log = logging.getLogger("uvicorn")


def _household(household) -> dict:
    return HouseholdResponse.model_validate(household).model_dump(mode="json")

def _member(member) -> dict:
    return MemberResponse.model_validate(member).model_dump(mode="json")


@router.get("", response_model=SuccessResponse)
async def list_households_endpoint(current_user: User = Depends(get_current_user)):
    """Lists every household the caller belongs to."""
    households = await household_service.list_households(current_user.id)
    return SuccessResponse(data=[_household(h) for h in households])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_household_endpoint(payload: HouseholdRequest, current_user: User = Depends(get_current_user)):
    """Creates a household; the caller becomes its OWNER."""
    household = await household_service.create_household(current_user.id, payload.name, payload.description)
    return SuccessResponse(data=_household(household))


@router.post("/join", response_model=SuccessResponse)
async def join_household_endpoint(payload: JoinRequest, current_user: User = Depends(get_current_user)):
    member = await household_service.join_household(current_user.id, payload.invite_code)
    log.info(f"User {current_user.id} joined household {member.household_id} via invite code.")
    return SuccessResponse(data=_member(member))


@router.get("/{household_id}", response_model=SuccessResponse)
async def get_household_endpoint(household_id: UUID, current_user: User = Depends(get_current_user)):
    household = await household_service.get_household(current_user.id, household_id)
    return SuccessResponse(data=_household(household))


@router.patch("/{household_id}", response_model=SuccessResponse)
async def update_household_endpoint(household_id: UUID, payload: HouseholdUpdate, current_user: User = Depends(get_current_user)):
    household = await household_service.update_household(
        current_user.id, household_id, payload.model_dump(exclude_unset=True)
    )
    return SuccessResponse(data=_household(household))


@router.delete("/{household_id}", response_model=SuccessResponse)
async def delete_household_endpoint(household_id: UUID, current_user: User = Depends(get_current_user)):
    """Deletes the household with all its kitchens. OWNER only."""
    await household_service.delete_household(current_user.id, household_id)
    return SuccessResponse(data={"deleted": True})


# ----------- Members -----------

@router.get("/{household_id}/members", response_model=SuccessResponse)
async def list_members_endpoint(household_id: UUID, current_user: User = Depends(get_current_user)):
    members = await household_service.list_members(current_user.id, household_id)
    return SuccessResponse(data=[_member(m) for m in members])


@router.post("/{household_id}/members", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def invite_member_endpoint(household_id: UUID, payload: InviteRequest, current_user: User = Depends(get_current_user)):
    """Adds an existing user to the household. Requires ADMIN."""
    member = await household_service.invite_member(current_user.id, household_id, payload.email, payload.role)
    return SuccessResponse(data=_member(member))


@router.patch("/{household_id}/members/{member_user_id}", response_model=SuccessResponse)
async def change_role_endpoint(household_id: UUID, member_user_id: UUID, payload: RoleUpdate, current_user: User = Depends(get_current_user)):
    member = await household_service.change_member_role(current_user.id, household_id, member_user_id, payload.role)
    return SuccessResponse(data=_member(member))


@router.delete("/{household_id}/members/{member_user_id}", response_model=SuccessResponse)
async def remove_member_endpoint(household_id: UUID, member_user_id: UUID, current_user: User = Depends(get_current_user)):
    """Removes a member, or lets the caller leave when it is their own id."""
    await household_service.remove_member(current_user.id, household_id, member_user_id)
    return SuccessResponse(data={"removed": True})


# ----------- Kitchens -----------

@router.get("/{household_id}/kitchens", response_model=SuccessResponse)
async def list_kitchens_endpoint(household_id: UUID, current_user: User = Depends(get_current_user)):
    kitchens = await household_service.list_kitchens(current_user.id, household_id)
    return SuccessResponse(data=[KitchenResponse.model_validate(k).model_dump(mode="json") for k in kitchens])


@router.post("/{household_id}/kitchens", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_kitchen_endpoint(household_id: UUID, payload: KitchenRequest, current_user: User = Depends(get_current_user)):
    kitchen = await household_service.create_kitchen(current_user.id, household_id, payload.model_dump())
    return SuccessResponse(data=KitchenResponse.model_validate(kitchen).model_dump(mode="json"))
