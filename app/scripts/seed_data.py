# app/scripts/seed_data.py
import asyncio
from datetime import datetime, timedelta, timezone
from app.core.db import init_db, close_db
from app.core.security import create_access_token, get_password_hash
from app.models.household import User, Household, HouseholdMember, Kitchen, Role
from app.models.inventory import InventoryItem, InventoryBatch, UsageLog, UsageType

async def seed():
    now = datetime.now(timezone.utc)

    # Create one user with a household and a kitchen
    user, _ = await User.get_or_create(
        email="demo@example.com",
        defaults={"name": "Demo User", "password_hash": get_password_hash("demo-password")},
    )
    print("User:", user.id, "(login: demo@example.com / demo-password)")

    household, _ = await Household.get_or_create(name="Demo Household", defaults={"invite_code": "DEMO01", "created_by": user})
    await HouseholdMember.get_or_create(user=user, household=household, defaults={"role": Role.OWNER})
    kitchen, _ = await Kitchen.get_or_create(household=household, name="Main Kitchen")
    print("Household:", household.id, "Kitchen:", kitchen.id)

    # Create inventory items
    milk, _ = await InventoryItem.get_or_create(kitchen=kitchen, name="Milk", defaults={"category": "DAIRY", "default_unit": "l", "threshold": 1})
    rice, _ = await InventoryItem.get_or_create(kitchen=kitchen, name="Rice", defaults={"category": "GRAINS", "default_unit": "kg", "threshold": 2})
    eggs, _ = await InventoryItem.get_or_create(kitchen=kitchen, name="Eggs", defaults={"category": "DAIRY", "default_unit": "pcs", "threshold": 4})

    print("Items:", str(milk.id), str(rice.id), str(eggs.id))

    # Batches: milk expiring soon, rice low, eggs plentiful but eaten fast
    if not await InventoryBatch.exists(item=milk):
        await InventoryBatch.create(item=milk, quantity=2, unit="l", expiry_date=now + timedelta(days=2), purchase_date=now)
        await InventoryBatch.create(item=rice, quantity=1.5, unit="kg", purchase_date=now)
        await InventoryBatch.create(item=eggs, quantity=12, unit="pcs", expiry_date=now + timedelta(days=20), purchase_date=now)
        for day in range(1, 15):
            await UsageLog.create(kitchen=kitchen, item=eggs, type=UsageType.CONSUMED, quantity=3, unit="pcs", date=now - timedelta(days=day))

    print("Inventory seeded.")
    print("Bearer token:", create_access_token(user.id))

async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
