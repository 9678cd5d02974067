from enum import Enum
from tortoise import fields, models
import uuid


class Role(str, Enum):
    VIEWER = "VIEWER"  # Read-only access to household data
    MEMBER = "MEMBER"  # Can edit inventory, reminders, kitchens
    ADMIN = "ADMIN"    # Can manage members and delete kitchens
    OWNER = "OWNER"    # Full control, including deleting the household


class User(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    email = fields.CharField(max_length=255, unique=True)
    name = fields.CharField(max_length=255, null=True)
    password_hash = fields.CharField(max_length=255, null=True)  # bcrypt; NULL for users who cannot log in
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"


class Household(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    invite_code = fields.CharField(max_length=16, unique=True)
    created_by = fields.ForeignKeyField("models.User", related_name="created_households", null=True, on_delete=fields.SET_NULL)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "households"


class HouseholdMember(models.Model):
    """
    Ties a user to a household with a Role. Every household keeps at least
    one OWNER; the household service refuses changes that would break this.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="memberships", on_delete=fields.CASCADE)
    household = fields.ForeignKeyField("models.Household", related_name="members", on_delete=fields.CASCADE)
    role = fields.CharEnumField(Role, default=Role.MEMBER)
    joined_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "household_members"
        unique_together = (("user", "household"),)
        indexes = [
            ("household_id", "role"),  # Owner counting
        ]


class Kitchen(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    household = fields.ForeignKeyField("models.Household", related_name="kitchens", on_delete=fields.CASCADE)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    type = fields.CharField(max_length=64, default="HOME")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "kitchens"
        indexes = [
            ("household_id",),
        ]
