from fastapi import APIRouter, Depends
from uuid import UUID

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.household import KitchenUpdate, KitchenResponse
from app.schemas.response import SuccessResponse
from app.services import household_service

router = APIRouter()


@router.get("/{kitchen_id}", response_model=SuccessResponse)
async def get_kitchen_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    kitchen = await household_service.get_kitchen(current_user.id, kitchen_id)
    return SuccessResponse(data=KitchenResponse.model_validate(kitchen).model_dump(mode="json"))


@router.patch("/{kitchen_id}", response_model=SuccessResponse)
async def update_kitchen_endpoint(kitchen_id: UUID, payload: KitchenUpdate, current_user: User = Depends(get_current_user)):
    kitchen = await household_service.update_kitchen(current_user.id, kitchen_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(data=KitchenResponse.model_validate(kitchen).model_dump(mode="json"))


@router.delete("/{kitchen_id}", response_model=SuccessResponse)
async def delete_kitchen_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    """Deletes a kitchen and its inventory. Requires ADMIN; the last kitchen is kept."""
    await household_service.delete_kitchen(current_user.id, kitchen_id)
    return SuccessResponse(data={"deleted": True})
