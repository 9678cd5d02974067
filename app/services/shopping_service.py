import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from tortoise.transactions import in_transaction

from app.core.clock import Clock, SystemClock
from app.core.config import EXPIRY_WINDOW_DAYS
from app.core.errors import ResourceNotFound, ValidationFailure, handle_db_error
from app.models.household import Role
from app.models.inventory import InventoryItem, InventoryBatch, BatchStatus
from app.models.reminder import Reminder, ReminderType
from app.models.shopping import ShoppingList, ShoppingListItem, ShoppingListType
from app.services.access import require_kitchen_access
from app.services.reminder_service import active_quantities

log = logging.getLogger("shopping_service")

# Staples added to generated lists unless an entry with the same name is already there
STAPLES = {
    ShoppingListType.DAILY: [
        ("Milk", 1, "liter"),
        ("Bread", 1, "loaf"),
        ("Eggs", 12, "pieces"),
    ],
    ShoppingListType.WEEKLY: [
        ("Rice", 5, "kg"),
        ("Onions", 2, "kg"),
        ("Tomatoes", 1, "kg"),
        ("Potatoes", 2, "kg"),
        ("Cooking Oil", 1, "liter"),
    ],
    ShoppingListType.MONTHLY: [
        ("Rice", 25, "kg"),
        ("Wheat Flour", 10, "kg"),
        ("Sugar", 5, "kg"),
        ("Salt", 1, "kg"),
        ("Spices Mix", 1, "pack"),
    ],
}


def list_totals(items: List[ShoppingListItem]) -> Dict[str, Any]:
    return {
        "total_items": len(items),
        "completed_items": sum(1 for i in items if i.is_purchased),
        "estimated_total": sum(i.price or 0 for i in items),
    }


# ----------- Lists -----------

async def _get_list_for(user_id, list_id, min_role: Role = Role.VIEWER) -> ShoppingList:
    shopping_list = await ShoppingList.get_or_none(id=list_id)
    if not shopping_list:
        raise ResourceNotFound("Shopping list")
    await require_kitchen_access(user_id, shopping_list.kitchen_id, min_role)
    return shopping_list


async def list_shopping_lists(user_id, kitchen_id) -> List[ShoppingList]:
    await require_kitchen_access(user_id, kitchen_id)
    return await ShoppingList.filter(kitchen_id=kitchen_id).order_by("-created_at").prefetch_related("items")


async def get_shopping_list(user_id, list_id) -> ShoppingList:
    shopping_list = await _get_list_for(user_id, list_id)
    await shopping_list.fetch_related("items")
    return shopping_list


async def create_shopping_list(user_id, kitchen_id, data: Dict[str, Any]) -> ShoppingList:
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    try:
        shopping_list = await ShoppingList.create(kitchen_id=kitchen_id, **data)
    except Exception as e:
        log.error(f"Error creating shopping list in kitchen {kitchen_id}: {e}")
        raise handle_db_error(e, "shopping list creation")
    await shopping_list.fetch_related("items")
    return shopping_list


async def update_shopping_list(user_id, list_id, data: Dict[str, Any]) -> ShoppingList:
    shopping_list = await _get_list_for(user_id, list_id, Role.MEMBER)
    data.pop("kitchen_id", None)
    shopping_list.update_from_dict(data)
    await shopping_list.save()
    await shopping_list.fetch_related("items")
    return shopping_list


async def delete_shopping_list(user_id, list_id) -> None:
    shopping_list = await _get_list_for(user_id, list_id, Role.MEMBER)
    await shopping_list.delete()


# ----------- List items -----------

async def _check_linked_item(kitchen_id, linked_item_id) -> None:
    if linked_item_id and not await InventoryItem.exists(id=linked_item_id, kitchen_id=kitchen_id):
        raise ValidationFailure("Linked item must belong to the list's kitchen", field="linked_item_id")


async def add_list_item(user_id, list_id, data: Dict[str, Any]) -> ShoppingListItem:
    shopping_list = await _get_list_for(user_id, list_id, Role.MEMBER)
    await _check_linked_item(shopping_list.kitchen_id, data.get("linked_item_id"))
    return await ShoppingListItem.create(shopping_list=shopping_list, **data)


async def _get_list_item_for(user_id, item_id) -> ShoppingListItem:
    entry = await ShoppingListItem.get_or_none(id=item_id).prefetch_related("shopping_list")
    if not entry:
        raise ResourceNotFound("Shopping list item")
    await require_kitchen_access(user_id, entry.shopping_list.kitchen_id, Role.MEMBER)
    return entry


async def update_list_item(user_id, item_id, data: Dict[str, Any]) -> ShoppingListItem:
    """Marks an entry purchased or updates its price, quantity or notes."""
    entry = await _get_list_item_for(user_id, item_id)
    data.pop("shopping_list_id", None)
    entry.update_from_dict(data)
    await entry.save()
    return entry


async def delete_list_item(user_id, item_id) -> None:
    entry = await _get_list_item_for(user_id, item_id)
    await entry.delete()


# ----------- Auto-generation -----------

def _list_title(list_type: ShoppingListType, now) -> str:
    if list_type == ShoppingListType.DAILY:
        return f"Daily Shopping - {now:%Y-%m-%d}"
    if list_type == ShoppingListType.WEEKLY:
        return f"Weekly Shopping - Week of {now:%Y-%m-%d}"
    if list_type == ShoppingListType.MONTHLY:
        return f"Monthly Shopping - {now:%B %Y}"
    return f"Shopping - {now:%Y-%m-%d}"


async def generate_auto_shopping_list(
    user_id,
    kitchen_id,
    list_type: ShoppingListType = ShoppingListType.WEEKLY,
    clock: Optional[Clock] = None,
) -> ShoppingList:
    """
    Builds a list from the kitchen's current state: low stock items,
    replacements for batches expiring within EXPIRY_WINDOW_DAYS, and items
    with an open restock (SHOPPING) reminder, one entry per inventory item.
    Staples for the list type fill in anything not already present.

    The restock reminders that fed the list are completed.
    """
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    list_type = ShoppingListType(list_type)
    now = (clock or SystemClock()).now()

    items = await InventoryItem.filter(kitchen_id=kitchen_id).order_by("name")
    totals = await active_quantities(item.id for item in items)
    entries: Dict[str, Dict[str, Any]] = {}

    for item in items:
        if totals.get(str(item.id), 0) <= item.threshold:
            entries[str(item.id)] = {
                "name": item.name,
                "quantity": item.threshold or 1,
                "unit": item.default_unit,
                "linked_item_id": item.id,
                "notes": "Low stock",
            }

    expiring = await InventoryBatch.filter(
        item__kitchen_id=kitchen_id,
        status=BatchStatus.ACTIVE,
        expiry_date__lte=now + timedelta(days=EXPIRY_WINDOW_DAYS),
    ).order_by("expiry_date").prefetch_related("item")
    for batch in expiring:
        key = str(batch.item_id)
        if key in entries:
            continue
        entries[key] = {
            "name": batch.item.name,
            "quantity": batch.quantity,
            "unit": batch.unit,
            "linked_item_id": batch.item_id,
            "notes": f"Expires on {batch.expiry_date:%Y-%m-%d}",
        }

    restock = await Reminder.filter(
        kitchen_id=kitchen_id, type=ReminderType.SHOPPING, is_completed=False, entity_id__isnull=False
    )
    by_id = {str(item.id): item for item in items}
    for reminder in restock:
        item = by_id.get(reminder.entity_id)
        if item and reminder.entity_id not in entries:
            entries[reminder.entity_id] = {
                "name": item.name,
                "quantity": item.threshold or 1,
                "unit": item.default_unit,
                "linked_item_id": item.id,
                "notes": "Running out soon",
            }

    names = {entry["name"].lower() for entry in entries.values()}
    staples = [
        {"name": name, "quantity": quantity, "unit": unit, "notes": "Common item"}
        for name, quantity, unit in STAPLES.get(list_type, [])
        if name.lower() not in names
    ]

    try:
        async with in_transaction() as conn:
            shopping_list = await ShoppingList.create(
                kitchen_id=kitchen_id,
                type=list_type,
                title=_list_title(list_type, now),
                description="Auto-generated based on low stock and expiring items",
                for_date=now,
                using_db=conn,
            )
            for entry in list(entries.values()) + staples:
                await ShoppingListItem.create(shopping_list=shopping_list, using_db=conn, **entry)
            for reminder in restock:
                reminder.mark_completed()
                await reminder.save(update_fields=["is_completed", "open_key", "updated_at"], using_db=conn)
    except Exception as e:
        log.error(f"Auto shopping list generation failed for kitchen {kitchen_id}: {e}")
        raise handle_db_error(e, "shopping list generation")

    log.info(f"Generated {list_type.value} shopping list {shopping_list.id} with {len(entries) + len(staples)} items.")
    await shopping_list.fetch_related("items")
    return shopping_list
