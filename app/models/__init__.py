# app/models/__init__.py
from .household import User, Household, HouseholdMember, Kitchen, Role
from .inventory import InventoryItem, InventoryBatch, UsageLog, BatchStatus, UsageType
from .reminder import Reminder, ReminderType
from .notification import Notification, NotificationType
from .shopping import ShoppingList, ShoppingListItem, ShoppingListType

# Export all models
__all__ = [
    "User",
    "Household",
    "HouseholdMember",
    "Kitchen",
    "Role",
    "InventoryItem",
    "InventoryBatch",
    "UsageLog",
    "BatchStatus",
    "UsageType",
    "Reminder",
    "ReminderType",
    "Notification",
    "NotificationType",
    "ShoppingList",
    "ShoppingListItem",
    "ShoppingListType",
]
