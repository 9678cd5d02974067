from enum import Enum
from tortoise import fields, models
import uuid


class NotificationType(str, Enum):
    EXPIRY_WARNING = "EXPIRY_WARNING"
    LOW_STOCK = "LOW_STOCK"
    SHOPPING_REMINDER = "SHOPPING_REMINDER"
    REMINDER = "REMINDER"
    GENERAL = "GENERAL"


class Notification(models.Model):
    """In-app notification delivered to a single user."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="notifications", on_delete=fields.CASCADE)
    type = fields.CharEnumField(NotificationType, default=NotificationType.GENERAL)
    title = fields.CharField(max_length=255)
    message = fields.TextField()
    data = fields.JSONField(default=dict)
    is_read = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "notifications"
        indexes = [
            ("user_id", "is_read"),
            ("user_id", "created_at"),
        ]
