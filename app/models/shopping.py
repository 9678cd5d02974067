from enum import Enum
from tortoise import fields, models
import uuid


class ShoppingListType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    FESTIVAL = "FESTIVAL"
    EVENT = "EVENT"
    CUSTOM = "CUSTOM"


class ShoppingList(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    kitchen = fields.ForeignKeyField("models.Kitchen", related_name="shopping_lists", on_delete=fields.CASCADE)
    type = fields.CharEnumField(ShoppingListType, default=ShoppingListType.CUSTOM)
    title = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    for_date = fields.DatetimeField(null=True)
    is_completed = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "shopping_lists"
        indexes = [("kitchen_id", "created_at")]


class ShoppingListItem(models.Model):
    """A line on a shopping list, optionally linked back to the inventory item it restocks."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    shopping_list = fields.ForeignKeyField("models.ShoppingList", related_name="items", on_delete=fields.CASCADE)
    name = fields.CharField(max_length=255)
    quantity = fields.FloatField(null=True)
    unit = fields.CharField(max_length=32, null=True)
    linked_item = fields.ForeignKeyField(
        "models.InventoryItem", related_name="shopping_entries", null=True, on_delete=fields.SET_NULL
    )
    is_purchased = fields.BooleanField(default=False)
    price = fields.FloatField(null=True)
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "shopping_list_items"
