from datetime import timedelta

import pytest

from app.core.errors import PermissionDenied, ResourceNotFound, ValidationFailure
from app.models.household import Kitchen
from app.models.inventory import InventoryItem, InventoryBatch, UsageLog, BatchStatus, UsageType
from app.services import inventory_service
from conftest import NOW


async def stocked_item(world, batches):
    item = await InventoryItem.create(kitchen=world.kitchen, name="Yoghurt", default_unit="pcs", threshold=2)
    created = []
    for quantity, days in batches:
        expiry = NOW + timedelta(days=days) if days is not None else None
        created.append(await InventoryBatch.create(item=item, quantity=quantity, unit="pcs", expiry_date=expiry))
    return item, created


@pytest.mark.asyncio
async def test_consumption_deducts_from_first_expiring_batch(world, clock):
    item, (later, sooner) = await stocked_item(world, [(4, 10), (3, 2)])

    await inventory_service.record_usage(
        world.member.id, world.kitchen.id, item.id, {"type": UsageType.CONSUMED, "quantity": 2}, clock=clock
    )

    await later.refresh_from_db()
    await sooner.refresh_from_db()
    assert sooner.quantity == 1
    assert later.quantity == 4
    assert await UsageLog.filter(item=item).count() == 1


@pytest.mark.asyncio
async def test_batch_reaching_zero_becomes_used_and_clamps(world, clock):
    item, (batch,) = await stocked_item(world, [(3, 2)])

    await inventory_service.record_usage(
        world.member.id, world.kitchen.id, item.id, {"type": UsageType.COOKED, "quantity": 5}, clock=clock
    )

    await batch.refresh_from_db()
    assert batch.quantity == 0
    assert batch.status == BatchStatus.USED


@pytest.mark.asyncio
async def test_wasted_batch_is_marked_wasted(world, clock):
    item, (batch,) = await stocked_item(world, [(1, 2)])

    await inventory_service.record_usage(
        world.member.id, world.kitchen.id, item.id, {"type": UsageType.WASTED, "quantity": 1}, clock=clock
    )

    await batch.refresh_from_db()
    assert batch.status == BatchStatus.WASTED


@pytest.mark.asyncio
async def test_purchase_opens_a_new_batch(world, clock):
    item, _ = await stocked_item(world, [])

    await inventory_service.record_usage(
        world.member.id, world.kitchen.id, item.id,
        {"type": UsageType.PURCHASED, "quantity": 6, "expiry_date": NOW + timedelta(days=14)},
        clock=clock,
    )

    [batch] = await InventoryBatch.filter(item=item)
    assert batch.quantity == 6
    assert batch.status == BatchStatus.ACTIVE
    assert batch.purchase_date == NOW


@pytest.mark.asyncio
async def test_usage_rejects_items_from_other_kitchens(world, clock):
    other = await Kitchen.create(household=world.household, name="Cabin")
    item, _ = await stocked_item(world, [(3, 2)])

    with pytest.raises(ResourceNotFound):
        await inventory_service.record_usage(
            world.member.id, other.id, item.id, {"type": UsageType.CONSUMED, "quantity": 1}, clock=clock
        )


@pytest.mark.asyncio
async def test_viewer_cannot_write_and_nothing_changes(world, clock):
    item, (batch,) = await stocked_item(world, [(3, 2)])

    with pytest.raises(PermissionDenied):
        await inventory_service.create_item(world.viewer.id, world.kitchen.id, {"name": "Flour"})
    with pytest.raises(PermissionDenied):
        await inventory_service.record_usage(
            world.viewer.id, world.kitchen.id, item.id, {"type": UsageType.CONSUMED, "quantity": 1}, clock=clock
        )

    await batch.refresh_from_db()
    assert batch.quantity == 3
    assert await InventoryItem.filter(kitchen=world.kitchen).count() == 1
    assert await UsageLog.all().count() == 0


@pytest.mark.asyncio
async def test_update_batch_validates_and_marks_used(world):
    item, (batch,) = await stocked_item(world, [(3, 2)])

    with pytest.raises(ValidationFailure):
        await inventory_service.update_batch(world.member.id, batch.id, quantity=-1)

    updated = await inventory_service.update_batch(world.member.id, batch.id, quantity=0)
    assert updated.status == BatchStatus.USED


@pytest.mark.asyncio
async def test_low_stock_and_expiring_listings(world, clock):
    low, _ = await stocked_item(world, [(1, 3)])
    plenty = await InventoryItem.create(kitchen=world.kitchen, name="Rice", threshold=1)
    await InventoryBatch.create(item=plenty, quantity=10, unit="kg", expiry_date=NOW + timedelta(days=60))

    low_items = await inventory_service.low_stock_items(world.viewer.id, world.kitchen.id)
    expiring = await inventory_service.expiring_items(world.viewer.id, world.kitchen.id, days=7, clock=clock)

    assert [i.id for i in low_items] == [low.id]
    assert [i.id for i in expiring] == [low.id]
