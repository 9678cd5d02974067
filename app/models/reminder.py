from enum import Enum
from tortoise import fields, models
import uuid


class ReminderType(str, Enum):
    LOW_STOCK = "LOW_STOCK"
    EXPIRY = "EXPIRY"
    SHOPPING = "SHOPPING"
    MEAL_PLAN = "MEAL_PLAN"
    CUSTOM = "CUSTOM"


def open_key_for(kitchen_id, reminder_type, entity_id) -> str:
    rtype = reminder_type.value if isinstance(reminder_type, ReminderType) else reminder_type
    return f"{kitchen_id}:{rtype}:{entity_id}"


class Reminder(models.Model):
    """
    A kitchen reminder, either user-created or derived by the reminder sweep.

    Derived reminders carry the id of the item/batch that triggered them in
    `entity_id`. While such a reminder is incomplete, `open_key` holds
    "<kitchen>:<type>:<entity>" and is unique; it is cleared on completion.
    This makes "at most one open reminder per (kitchen, type, entity)" a
    database constraint rather than a check-then-insert.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    kitchen = fields.ForeignKeyField("models.Kitchen", related_name="reminders", on_delete=fields.CASCADE)
    type = fields.CharEnumField(ReminderType)
    title = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    scheduled_at = fields.DatetimeField()
    is_completed = fields.BooleanField(default=False)
    is_recurring = fields.BooleanField(default=False)
    frequency = fields.CharField(max_length=32, null=True)  # daily / weekly / monthly / yearly
    entity_id = fields.CharField(max_length=64, null=True)
    meta = fields.JSONField(default=dict)
    open_key = fields.CharField(max_length=255, null=True, unique=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "reminders"
        indexes = [
            ("kitchen_id", "scheduled_at"),
            ("is_completed", "scheduled_at"),  # Due reminder scan
            ("kitchen_id", "type", "entity_id", "is_completed"),
        ]

    def mark_completed(self):
        self.is_completed = True
        self.open_key = None
