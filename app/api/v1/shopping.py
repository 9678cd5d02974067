from fastapi import APIRouter, Depends, status
from uuid import UUID

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.response import SuccessResponse
from app.schemas.shopping import (
    ShoppingListRequest,
    ShoppingListUpdate,
    ShoppingListResponse,
    GenerateListRequest,
    ListItemRequest,
    ListItemUpdate,
    ListItemResponse,
)
from app.services import shopping_service

router = APIRouter()


def _entry(entry) -> dict:
    return ListItemResponse.model_validate(entry).model_dump(mode="json")

def _shopping_list(shopping_list) -> dict:
    items = list(shopping_list.items)
    data = ShoppingListResponse.model_validate(shopping_list).model_dump(mode="json")
    data["items"] = [_entry(i) for i in items]
    data.update(shopping_service.list_totals(items))
    return data


@router.get("/kitchens/{kitchen_id}/lists", response_model=SuccessResponse)
async def list_shopping_lists_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    lists = await shopping_service.list_shopping_lists(current_user.id, kitchen_id)
    return SuccessResponse(data=[_shopping_list(sl) for sl in lists])


@router.post("/kitchens/{kitchen_id}/lists", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_shopping_list_endpoint(kitchen_id: UUID, payload: ShoppingListRequest, current_user: User = Depends(get_current_user)):
    shopping_list = await shopping_service.create_shopping_list(current_user.id, kitchen_id, payload.model_dump())
    return SuccessResponse(data=_shopping_list(shopping_list))


@router.post("/kitchens/{kitchen_id}/generate", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def generate_shopping_list_endpoint(kitchen_id: UUID, payload: GenerateListRequest, current_user: User = Depends(get_current_user)):
    """
    Builds a list from low stock, soon-expiring and running-out items,
    topped up with staples for the list type.
    """
    shopping_list = await shopping_service.generate_auto_shopping_list(current_user.id, kitchen_id, payload.type)
    return SuccessResponse(data=_shopping_list(shopping_list))


@router.get("/lists/{list_id}", response_model=SuccessResponse)
async def get_shopping_list_endpoint(list_id: UUID, current_user: User = Depends(get_current_user)):
    shopping_list = await shopping_service.get_shopping_list(current_user.id, list_id)
    return SuccessResponse(data=_shopping_list(shopping_list))


@router.patch("/lists/{list_id}", response_model=SuccessResponse)
async def update_shopping_list_endpoint(list_id: UUID, payload: ShoppingListUpdate, current_user: User = Depends(get_current_user)):
    shopping_list = await shopping_service.update_shopping_list(current_user.id, list_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(data=_shopping_list(shopping_list))


@router.delete("/lists/{list_id}", response_model=SuccessResponse)
async def delete_shopping_list_endpoint(list_id: UUID, current_user: User = Depends(get_current_user)):
    await shopping_service.delete_shopping_list(current_user.id, list_id)
    return SuccessResponse(data={"deleted": True})


@router.post("/lists/{list_id}/items", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_list_item_endpoint(list_id: UUID, payload: ListItemRequest, current_user: User = Depends(get_current_user)):
    entry = await shopping_service.add_list_item(current_user.id, list_id, payload.model_dump())
    return SuccessResponse(data=_entry(entry))


@router.patch("/items/{item_id}", response_model=SuccessResponse)
async def update_list_item_endpoint(item_id: UUID, payload: ListItemUpdate, current_user: User = Depends(get_current_user)):
    """Marks an entry purchased, or updates its price, quantity or notes."""
    entry = await shopping_service.update_list_item(current_user.id, item_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(data=_entry(entry))


@router.delete("/items/{item_id}", response_model=SuccessResponse)
async def delete_list_item_endpoint(item_id: UUID, current_user: User = Depends(get_current_user)):
    await shopping_service.delete_list_item(current_user.id, item_id)
    return SuccessResponse(data={"deleted": True})
