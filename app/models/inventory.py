from enum import Enum
from tortoise import fields, models
import uuid


class BatchStatus(str, Enum):
    ACTIVE = "ACTIVE"
    USED = "USED"        # Quantity consumed down to zero
    EXPIRED = "EXPIRED"
    WASTED = "WASTED"


class UsageType(str, Enum):
    PURCHASED = "PURCHASED"
    USED = "USED"
    CONSUMED = "CONSUMED"
    COOKED = "COOKED"
    WASTED = "WASTED"


# Usage log types that count towards consumption rate predictions
CONSUMPTION_TYPES = (UsageType.USED, UsageType.CONSUMED, UsageType.COOKED)
# Usage log types that deduct from stock
DEDUCTING_TYPES = CONSUMPTION_TYPES + (UsageType.WASTED,)


class InventoryItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    kitchen = fields.ForeignKeyField("models.Kitchen", related_name="inventory_items", on_delete=fields.CASCADE)
    name = fields.CharField(max_length=255)
    category = fields.CharField(max_length=64, null=True)
    default_unit = fields.CharField(max_length=32, default="pcs")
    threshold = fields.FloatField(default=1)  # Restock threshold, inclusive
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "inventory_items"
        indexes = [
            ("kitchen_id",),
            ("kitchen_id", "name"),
        ]


class InventoryBatch(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    item = fields.ForeignKeyField("models.InventoryItem", related_name="batches", on_delete=fields.CASCADE)
    quantity = fields.FloatField()
    unit = fields.CharField(max_length=32)
    expiry_date = fields.DatetimeField(null=True)
    purchase_date = fields.DatetimeField(null=True)
    status = fields.CharEnumField(BatchStatus, default=BatchStatus.ACTIVE)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "inventory_batches"
        indexes = [
            ("item_id", "status"),
            ("status", "expiry_date"),  # Expiry sweep
        ]


class UsageLog(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    kitchen = fields.ForeignKeyField("models.Kitchen", related_name="usage_logs", on_delete=fields.CASCADE)
    item = fields.ForeignKeyField("models.InventoryItem", related_name="usage_logs", on_delete=fields.CASCADE)
    type = fields.CharEnumField(UsageType)
    quantity = fields.FloatField()
    unit = fields.CharField(max_length=32, null=True)
    date = fields.DatetimeField()
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "usage_logs"
        indexes = [
            ("kitchen_id", "date"),
            ("item_id", "type", "date"),  # Consumption rate window
        ]
