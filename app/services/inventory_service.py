import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from tortoise.transactions import in_transaction

from app.core.clock import Clock, SystemClock
from app.core.errors import ResourceNotFound, ValidationFailure, handle_db_error
from app.models.household import Role
from app.models.inventory import (
    InventoryItem,
    InventoryBatch,
    UsageLog,
    BatchStatus,
    UsageType,
    DEDUCTING_TYPES,
)
from app.services.access import require_kitchen_access
from app.services.reminder_service import active_quantities

log = logging.getLogger("inventory_service")


# ----------- Items -----------

async def _get_item_for(user_id, item_id, min_role: Role = Role.VIEWER) -> InventoryItem:
    item = await InventoryItem.get_or_none(id=item_id)
    if not item:
        raise ResourceNotFound("Inventory item")
    await require_kitchen_access(user_id, item.kitchen_id, min_role)
    return item


async def list_items(user_id, kitchen_id) -> List[InventoryItem]:
    await require_kitchen_access(user_id, kitchen_id)
    return await InventoryItem.filter(kitchen_id=kitchen_id).order_by("name")


async def get_item(user_id, item_id) -> InventoryItem:
    return await _get_item_for(user_id, item_id)


async def create_item(user_id, kitchen_id, data: Dict[str, Any]) -> InventoryItem:
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    try:
        return await InventoryItem.create(kitchen_id=kitchen_id, **data)
    except Exception as e:
        log.error(f"Error creating inventory item in kitchen {kitchen_id}: {e}")
        raise handle_db_error(e, "inventory item creation")


async def update_item(user_id, item_id, data: Dict[str, Any]) -> InventoryItem:
    item = await _get_item_for(user_id, item_id, Role.MEMBER)
    data.pop("kitchen_id", None)
    item.update_from_dict(data)
    await item.save()
    return item


async def delete_item(user_id, item_id) -> None:
    item = await _get_item_for(user_id, item_id, Role.MEMBER)
    await item.delete()


async def item_quantities(items: List[InventoryItem]) -> Dict[str, float]:
    return await active_quantities(item.id for item in items)


async def low_stock_items(user_id, kitchen_id) -> List[InventoryItem]:
    """Items whose ACTIVE stock is at or below their threshold (including empty ones)."""
    items = await list_items(user_id, kitchen_id)
    totals = await item_quantities(items)
    return [item for item in items if totals.get(str(item.id), 0) <= item.threshold]


async def expiring_items(user_id, kitchen_id, days: int = 7, clock: Optional[Clock] = None) -> List[InventoryItem]:
    await require_kitchen_access(user_id, kitchen_id)
    now = (clock or SystemClock()).now()
    return await InventoryItem.filter(
        kitchen_id=kitchen_id,
        batches__status=BatchStatus.ACTIVE,
        batches__expiry_date__gte=now,
        batches__expiry_date__lte=now + timedelta(days=days),
    ).distinct().order_by("name")


# ----------- Batches -----------

async def list_batches(user_id, item_id) -> List[InventoryBatch]:
    await _get_item_for(user_id, item_id)
    return await InventoryBatch.filter(item_id=item_id).order_by("expiry_date")


async def create_batch(user_id, item_id, data: Dict[str, Any]) -> InventoryBatch:
    item = await _get_item_for(user_id, item_id, Role.MEMBER)
    data.setdefault("unit", item.default_unit)
    return await InventoryBatch.create(item=item, **data)


async def _get_batch_for(user_id, batch_id) -> InventoryBatch:
    batch = await InventoryBatch.get_or_none(id=batch_id).prefetch_related("item")
    if not batch:
        raise ResourceNotFound("Inventory batch")
    await require_kitchen_access(user_id, batch.item.kitchen_id, Role.MEMBER)
    return batch


async def update_batch(user_id, batch_id, quantity: Optional[float] = None, expiry_date=None) -> InventoryBatch:
    batch = await _get_batch_for(user_id, batch_id)
    if quantity is not None:
        if quantity < 0:
            raise ValidationFailure("Quantity cannot be negative", field="quantity")
        batch.quantity = quantity
        if quantity == 0 and batch.status == BatchStatus.ACTIVE:
            batch.status = BatchStatus.USED
    if expiry_date is not None:
        batch.expiry_date = expiry_date
    await batch.save()
    return batch


async def delete_batch(user_id, batch_id) -> None:
    batch = await _get_batch_for(user_id, batch_id)
    await batch.delete()


# ----------- Usage logs -----------

async def list_usage_logs(user_id, kitchen_id, limit: int = 100) -> List[UsageLog]:
    await require_kitchen_access(user_id, kitchen_id)
    return await UsageLog.filter(kitchen_id=kitchen_id).order_by("-date").limit(limit)


async def record_usage(
    user_id,
    kitchen_id,
    item_id,
    data: Dict[str, Any],
    clock: Optional[Clock] = None,
) -> UsageLog:
    """
    Logs a usage event and applies it to stock.

    Consumption and waste deduct from the ACTIVE batch expiring first
    (FIFO), clamping at zero; a batch that hits zero becomes USED, or
    WASTED for waste logs. A purchase opens a new ACTIVE batch.
    """
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)

    item = await InventoryItem.get_or_none(id=item_id, kitchen_id=kitchen_id)
    if not item:
        raise ResourceNotFound("Inventory item")

    usage_type = UsageType(data["type"])
    quantity = data["quantity"]
    if quantity <= 0:
        raise ValidationFailure("Quantity must be positive", field="quantity")
    now = (clock or SystemClock()).now()

    try:
        async with in_transaction() as conn:
            usage_log = await UsageLog.create(
                kitchen_id=kitchen_id,
                item=item,
                type=usage_type,
                quantity=quantity,
                unit=data.get("unit") or item.default_unit,
                date=data.get("date") or now,
                notes=data.get("notes"),
                using_db=conn,
            )

            if usage_type in DEDUCTING_TYPES:
                batch = await InventoryBatch.filter(
                    item_id=item.id, status=BatchStatus.ACTIVE, quantity__gt=0
                ).order_by("expiry_date").using_db(conn).first()
                if batch:
                    batch.quantity = max(0, batch.quantity - quantity)
                    if batch.quantity == 0:
                        batch.status = BatchStatus.WASTED if usage_type == UsageType.WASTED else BatchStatus.USED
                    await batch.save(update_fields=["quantity", "status", "updated_at"], using_db=conn)
            elif usage_type == UsageType.PURCHASED:
                await InventoryBatch.create(
                    item=item,
                    quantity=quantity,
                    unit=usage_log.unit,
                    purchase_date=now,
                    expiry_date=data.get("expiry_date"),
                    status=BatchStatus.ACTIVE,
                    using_db=conn,
                )
    except Exception as e:
        log.error(f"Error recording usage for item {item_id}: {e}")
        raise handle_db_error(e, "usage logging")

    return usage_log
