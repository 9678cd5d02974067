import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List
from uuid import UUID

from app.core.errors import AppError
from app.core.security import get_current_user
from app.models.household import User
from app.models.inventory import InventoryItem
from app.schemas.inventory import (
    InventoryItemRequest,
    InventoryItemUpdate,
    InventoryItemResponse,
    BatchRequest,
    BatchUpdate,
    BatchResponse,
    UsageLogRequest,
    UsageLogResponse,
)
from app.schemas.response import SuccessResponse
from app.services import inventory_service

log = logging.getLogger("uvicorn")

router = APIRouter()


async def _items_with_stock(items: List[InventoryItem]) -> list:
    totals = await inventory_service.item_quantities(items)
    return [
        InventoryItemResponse.model_validate(item)
        .model_copy(update={"quantity": totals.get(str(item.id), 0)})
        .model_dump(mode="json")
        for item in items
    ]

def _batch(batch) -> dict:
    return BatchResponse.model_validate(batch).model_dump(mode="json")


# ----------- Items -----------

@router.get("/kitchens/{kitchen_id}/items", response_model=SuccessResponse)
async def list_items_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    """Lists a kitchen's inventory with current ACTIVE stock per item."""
    items = await inventory_service.list_items(current_user.id, kitchen_id)
    return SuccessResponse(data=await _items_with_stock(items))


@router.post("/kitchens/{kitchen_id}/items", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_item_endpoint(kitchen_id: UUID, payload: InventoryItemRequest, current_user: User = Depends(get_current_user)):
    item = await inventory_service.create_item(current_user.id, kitchen_id, payload.model_dump())
    return SuccessResponse(data=(await _items_with_stock([item]))[0])


@router.get("/kitchens/{kitchen_id}/low-stock", response_model=SuccessResponse)
async def low_stock_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    items = await inventory_service.low_stock_items(current_user.id, kitchen_id)
    return SuccessResponse(data=await _items_with_stock(items))


@router.get("/kitchens/{kitchen_id}/expiring", response_model=SuccessResponse)
async def expiring_endpoint(kitchen_id: UUID, days: int = Query(7, ge=1, le=365), current_user: User = Depends(get_current_user)):
    """Items with at least one ACTIVE batch expiring within `days`."""
    items = await inventory_service.expiring_items(current_user.id, kitchen_id, days)
    return SuccessResponse(data=await _items_with_stock(items))


@router.get("/items/{item_id}", response_model=SuccessResponse)
async def get_item_endpoint(item_id: UUID, current_user: User = Depends(get_current_user)):
    item = await inventory_service.get_item(current_user.id, item_id)
    return SuccessResponse(data=(await _items_with_stock([item]))[0])


@router.patch("/items/{item_id}", response_model=SuccessResponse)
async def update_item_endpoint(item_id: UUID, payload: InventoryItemUpdate, current_user: User = Depends(get_current_user)):
    item = await inventory_service.update_item(current_user.id, item_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(data=(await _items_with_stock([item]))[0])


@router.delete("/items/{item_id}", response_model=SuccessResponse)
async def delete_item_endpoint(item_id: UUID, current_user: User = Depends(get_current_user)):
    await inventory_service.delete_item(current_user.id, item_id)
    return SuccessResponse(data={"deleted": True})


# ----------- Batches -----------

@router.get("/items/{item_id}/batches", response_model=SuccessResponse)
async def list_batches_endpoint(item_id: UUID, current_user: User = Depends(get_current_user)):
    batches = await inventory_service.list_batches(current_user.id, item_id)
    return SuccessResponse(data=[_batch(b) for b in batches])


@router.post("/items/{item_id}/batches", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_batch_endpoint(item_id: UUID, payload: BatchRequest, current_user: User = Depends(get_current_user)):
    batch = await inventory_service.create_batch(current_user.id, item_id, payload.model_dump(exclude_none=True))
    return SuccessResponse(data=_batch(batch))


@router.patch("/batches/{batch_id}", response_model=SuccessResponse)
async def update_batch_endpoint(batch_id: UUID, payload: BatchUpdate, current_user: User = Depends(get_current_user)):
    batch = await inventory_service.update_batch(current_user.id, batch_id, payload.quantity, payload.expiry_date)
    return SuccessResponse(data=_batch(batch))


@router.delete("/batches/{batch_id}", response_model=SuccessResponse)
async def delete_batch_endpoint(batch_id: UUID, current_user: User = Depends(get_current_user)):
    await inventory_service.delete_batch(current_user.id, batch_id)
    return SuccessResponse(data={"deleted": True})


# ----------- Usage logs -----------

@router.get("/kitchens/{kitchen_id}/usage-logs", response_model=SuccessResponse)
async def list_usage_logs_endpoint(kitchen_id: UUID, limit: int = Query(100, ge=1, le=1000), current_user: User = Depends(get_current_user)):
    logs = await inventory_service.list_usage_logs(current_user.id, kitchen_id, limit)
    return SuccessResponse(data=[UsageLogResponse.model_validate(l).model_dump(mode="json") for l in logs])


@router.post("/kitchens/{kitchen_id}/usage-logs", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def record_usage_endpoint(kitchen_id: UUID, payload: UsageLogRequest, current_user: User = Depends(get_current_user)):
    """
    Records a usage event. Consumption and waste deduct stock FIFO by expiry;
    purchases open a new batch.
    """
    try:
        data = payload.model_dump(exclude={"item_id"})
        usage_log = await inventory_service.record_usage(current_user.id, kitchen_id, payload.item_id, data)
        return SuccessResponse(data=UsageLogResponse.model_validate(usage_log).model_dump(mode="json"))
    except AppError:
        # Re-raise domain errors (403, 404, 400) for the app error handler
        raise
    except Exception as e:
        log.error(f"Error recording usage in kitchen {kitchen_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to record usage.")
