import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta
from tortoise.exceptions import IntegrityError

from app.core.clock import Clock, SystemClock
from app.core.config import EXPIRY_WINDOW_DAYS, USAGE_WINDOW_DAYS, RESTOCK_HORIZON_DAYS
from app.core.errors import ResourceNotFound, handle_db_error
from app.models.household import Kitchen, Role
from app.models.inventory import InventoryBatch, InventoryItem, UsageLog, BatchStatus, CONSUMPTION_TYPES
from app.models.notification import NotificationType
from app.models.reminder import Reminder, ReminderType, open_key_for
from app.services.access import require_kitchen_access
from app.services.notification_service import NotificationService, notification_service

log = logging.getLogger("reminder_service")

NOTIFICATION_TYPES = {
    ReminderType.LOW_STOCK: NotificationType.LOW_STOCK,
    ReminderType.EXPIRY: NotificationType.EXPIRY_WARNING,
    ReminderType.SHOPPING: NotificationType.SHOPPING_REMINDER,
}

FREQUENCY_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "yearly": relativedelta(years=1),
}


def next_schedule(current: datetime, frequency: Optional[str]) -> Optional[datetime]:
    """
    Next occurrence of a recurring reminder, or None if the frequency is
    missing or not one of daily/weekly/monthly/yearly. Month and year steps
    clamp to the end of shorter months (Jan 31 -> Feb 28/29).
    """
    if not frequency:
        return None
    step = FREQUENCY_STEPS.get(frequency.strip().lower())
    if step is None:
        return None
    return current + step


# ----------- Derived reminder helpers -----------

async def active_quantities(item_ids: Iterable) -> Dict[str, float]:
    """Sum of ACTIVE batch quantities per item id (as str)."""
    ids = list(item_ids)
    totals: Dict[str, float] = defaultdict(float)
    if not ids:
        return totals
    rows = await InventoryBatch.filter(item_id__in=ids, status=BatchStatus.ACTIVE).values("item_id", "quantity")
    for row in rows:
        totals[str(row["item_id"])] += row["quantity"]
    return totals


async def ensure_reminder(
    kitchen: Kitchen,
    reminder_type: ReminderType,
    entity_id,
    title: str,
    description: str,
    meta: Dict[str, Any],
    clock: Clock,
) -> Optional[Reminder]:
    """
    Creates the open reminder for (kitchen, type, entity) unless one exists.
    Returns the new reminder, or None when one was already open. A concurrent
    sweep that wins the race trips the unique open_key index; that is
    treated the same as finding an existing reminder.
    """
    entity_id = str(entity_id)
    already_open = await Reminder.filter(
        kitchen_id=kitchen.id, type=reminder_type, entity_id=entity_id, is_completed=False
    ).exists()
    if already_open:
        return None

    try:
        return await Reminder.create(
            kitchen=kitchen,
            type=reminder_type,
            title=title,
            description=description,
            scheduled_at=clock.now(),
            entity_id=entity_id,
            meta=meta,
            open_key=open_key_for(kitchen.id, reminder_type, entity_id),
        )
    except IntegrityError:
        log.info(f"Open {reminder_type.value} reminder for {entity_id} created concurrently; skipping.")
        return None


async def _announce(notifier: NotificationService, kitchen: Kitchen, reminder: Reminder, data: Dict[str, Any]):
    await notifier.notify_household(
        kitchen.household_id,
        reminder.title,
        reminder.description or "",
        data={"reminder_id": str(reminder.id), "kitchen_id": str(kitchen.id), **data},
        type=NOTIFICATION_TYPES.get(reminder.type, NotificationType.REMINDER),
    )


async def _items_in_scope(kitchen_id=None) -> List[InventoryItem]:
    query = InventoryItem.all()
    if kitchen_id:
        query = query.filter(kitchen_id=kitchen_id)
    return await query.prefetch_related("kitchen")


# ----------- Sweep passes -----------

async def sweep_low_stock(
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationService] = None,
    kitchen_id=None,
) -> List[Reminder]:
    """
    LOW_STOCK for every item whose ACTIVE stock Q satisfies 0 < Q <= threshold.
    An item at zero is out of stock, not low.
    """
    clock = clock or SystemClock()
    notifier = notifier or notification_service
    items = await _items_in_scope(kitchen_id)
    totals = await active_quantities(item.id for item in items)

    created = []
    for item in items:
        quantity = totals.get(str(item.id), 0)
        if not (0 < quantity <= item.threshold):
            continue

        reminder = await ensure_reminder(
            item.kitchen,
            ReminderType.LOW_STOCK,
            item.id,
            title=f"Low Stock: {item.name}",
            description=f"Only {quantity:g} {item.default_unit} left in {item.kitchen.name}. Consider restocking soon.",
            meta={"item_id": str(item.id), "current_quantity": quantity, "threshold": item.threshold},
            clock=clock,
        )
        if reminder:
            created.append(reminder)
            await _announce(notifier, item.kitchen, reminder, {"item_id": str(item.id)})

    log.info(f"Low stock sweep checked {len(items)} items, created {len(created)} reminders.")
    return created


async def sweep_expiring(
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationService] = None,
    kitchen_id=None,
) -> List[Reminder]:
    """EXPIRY for every ACTIVE batch expiring between now and now + EXPIRY_WINDOW_DAYS."""
    clock = clock or SystemClock()
    notifier = notifier or notification_service
    now = clock.now()

    query = InventoryBatch.filter(
        status=BatchStatus.ACTIVE,
        expiry_date__gte=now,
        expiry_date__lte=now + timedelta(days=EXPIRY_WINDOW_DAYS),
    )
    if kitchen_id:
        item_ids = await InventoryItem.filter(kitchen_id=kitchen_id).values_list("id", flat=True)
        query = query.filter(item_id__in=list(item_ids))
    batches = await query.prefetch_related("item", "item__kitchen")

    created = []
    for batch in batches:
        item = batch.item
        days_left = math.ceil((batch.expiry_date - now).total_seconds() / 86400)
        reminder = await ensure_reminder(
            item.kitchen,
            ReminderType.EXPIRY,
            batch.id,
            title=f"Expiring Soon: {item.name}",
            description=f"{batch.quantity:g} {batch.unit} of {item.name} expires in {days_left} day(s). Use it soon!",
            meta={
                "batch_id": str(batch.id),
                "item_id": str(item.id),
                "expiry_date": batch.expiry_date.isoformat(),
                "quantity": batch.quantity,
                "days_until_expiry": days_left,
            },
            clock=clock,
        )
        if reminder:
            created.append(reminder)
            await _announce(notifier, item.kitchen, reminder, {"item_id": str(item.id), "batch_id": str(batch.id)})

    log.info(f"Expiry sweep found {len(batches)} expiring batches, created {len(created)} reminders.")
    return created


async def sweep_usage_predictions(
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationService] = None,
    kitchen_id=None,
) -> List[Reminder]:
    """
    SHOPPING for items projected to run out within RESTOCK_HORIZON_DAYS.

    The daily rate is total USED/CONSUMED/COOKED quantity over the trailing
    USAGE_WINDOW_DAYS divided by the window length. Items already at zero
    are skipped.
    """
    clock = clock or SystemClock()
    notifier = notifier or notification_service
    now = clock.now()

    query = UsageLog.filter(
        type__in=[t.value for t in CONSUMPTION_TYPES],
        date__gte=now - timedelta(days=USAGE_WINDOW_DAYS),
    )
    if kitchen_id:
        query = query.filter(kitchen_id=kitchen_id)
    rows = await query.values("item_id", "quantity")

    consumed: Dict[str, float] = defaultdict(float)
    for row in rows:
        consumed[str(row["item_id"])] += row["quantity"]

    daily_rates = {item_id: total / USAGE_WINDOW_DAYS for item_id, total in consumed.items()}
    daily_rates = {item_id: rate for item_id, rate in daily_rates.items() if rate > 0}
    if not daily_rates:
        log.info("Usage prediction sweep found no consumption in window.")
        return []

    items = await InventoryItem.filter(id__in=list(daily_rates)).prefetch_related("kitchen")
    totals = await active_quantities(item.id for item in items)

    created = []
    for item in items:
        rate = daily_rates[str(item.id)]
        quantity = totals.get(str(item.id), 0)
        if quantity <= 0:
            continue
        days_remaining = quantity / rate
        if days_remaining > RESTOCK_HORIZON_DAYS:
            continue

        reminder = await ensure_reminder(
            item.kitchen,
            ReminderType.SHOPPING,
            item.id,
            title=f"Restock Soon: {item.name}",
            description=f"Based on usage patterns, you'll run out in {math.floor(days_remaining)} days. Add to shopping list?",
            meta={
                "item_id": str(item.id),
                "days_remaining": round(days_remaining, 2),
                "avg_daily_usage": rate,
                "current_quantity": quantity,
            },
            clock=clock,
        )
        if reminder:
            created.append(reminder)
            await _announce(notifier, item.kitchen, reminder, {"item_id": str(item.id)})

    log.info(f"Usage prediction sweep evaluated {len(items)} items, created {len(created)} reminders.")
    return created


async def process_scheduled_reminders(
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationService] = None,
) -> int:
    """
    Fires user-scheduled reminders that are due. One-shot reminders are
    completed; recurring ones move forward by their frequency. An unknown
    frequency leaves the schedule as it is.

    Derived reminders (those bound to an item or batch) announce themselves
    when created and stay open until a member completes them, so they are
    not fired here.
    """
    clock = clock or SystemClock()
    notifier = notifier or notification_service
    now = clock.now()

    due = await Reminder.filter(
        is_completed=False, entity_id__isnull=True, scheduled_at__lte=now
    ).order_by("scheduled_at").prefetch_related("kitchen")

    for reminder in due:
        await notifier.notify_household(
            reminder.kitchen.household_id,
            reminder.title,
            reminder.description or "",
            data={"reminder_id": str(reminder.id), "kitchen_id": str(reminder.kitchen_id)},
            type=NotificationType.REMINDER,
        )

        if not reminder.is_recurring:
            reminder.mark_completed()
            await reminder.save(update_fields=["is_completed", "open_key", "updated_at"])
            continue

        upcoming = next_schedule(reminder.scheduled_at, reminder.frequency)
        if upcoming:
            reminder.scheduled_at = upcoming
            await reminder.save(update_fields=["scheduled_at", "updated_at"])
        else:
            log.warning(f"Reminder {reminder.id} has unrecognised frequency {reminder.frequency!r}; schedule left unchanged.")

    log.info(f"Processed {len(due)} scheduled reminders.")
    return len(due)


SWEEP_PASSES = {
    "low_stock": sweep_low_stock,
    "expiry": sweep_expiring,
    "usage_prediction": sweep_usage_predictions,
}


async def run_sweep(clock: Optional[Clock] = None, notifier: Optional[NotificationService] = None) -> Dict[str, int]:
    """
    Runs every derivation pass once. A failing pass is logged and reported
    as -1; the remaining passes still run.
    """
    results = {}
    for name, sweep in SWEEP_PASSES.items():
        try:
            results[name] = len(await sweep(clock=clock, notifier=notifier))
        except Exception:
            log.exception(f"Reminder sweep pass '{name}' failed.")
            results[name] = -1
    return results


async def generate_smart_reminders(
    user_id,
    kitchen_id,
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationService] = None,
) -> List[Reminder]:
    """On-demand run of the derivation passes for a single kitchen."""
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    created = []
    try:
        for sweep in SWEEP_PASSES.values():
            created.extend(await sweep(clock=clock, notifier=notifier, kitchen_id=kitchen_id))
    except Exception as e:
        log.error(f"Smart reminder generation failed for kitchen {kitchen_id}: {e}")
        raise handle_db_error(e, "smart reminder generation")
    return created


# ----------- Reminder CRUD -----------

async def list_reminders(user_id, kitchen_id) -> List[Reminder]:
    await require_kitchen_access(user_id, kitchen_id)
    return await Reminder.filter(kitchen_id=kitchen_id).order_by("scheduled_at")


async def upcoming_reminders(user_id, kitchen_id, days: int = 7, clock: Optional[Clock] = None) -> List[Reminder]:
    await require_kitchen_access(user_id, kitchen_id)
    now = (clock or SystemClock()).now()
    return await Reminder.filter(
        kitchen_id=kitchen_id,
        is_completed=False,
        scheduled_at__gte=now,
        scheduled_at__lte=now + timedelta(days=days),
    ).order_by("scheduled_at")


async def open_alerts(user_id, kitchen_id) -> List[Reminder]:
    """
    Open reminders derived from stock (low stock, expiry, restock), newest
    first. They stay listed until a member completes them, whatever their
    scheduled_at.
    """
    await require_kitchen_access(user_id, kitchen_id)
    return await Reminder.filter(
        kitchen_id=kitchen_id, is_completed=False, entity_id__isnull=False
    ).order_by("-created_at")


async def create_reminder(user_id, kitchen_id, data: Dict[str, Any]) -> Reminder:
    await require_kitchen_access(user_id, kitchen_id, Role.MEMBER)
    try:
        return await Reminder.create(kitchen_id=kitchen_id, **data)
    except Exception as e:
        raise handle_db_error(e, "reminder creation")


async def _get_reminder_for(user_id, reminder_id) -> Reminder:
    reminder = await Reminder.get_or_none(id=reminder_id)
    if not reminder:
        raise ResourceNotFound("Reminder")
    await require_kitchen_access(user_id, reminder.kitchen_id, Role.MEMBER)
    return reminder


async def update_reminder(user_id, reminder_id, is_completed: bool) -> Reminder:
    reminder = await _get_reminder_for(user_id, reminder_id)
    if is_completed:
        reminder.mark_completed()
    else:
        reminder.is_completed = False
        if reminder.entity_id:
            reminder.open_key = open_key_for(reminder.kitchen_id, reminder.type, reminder.entity_id)
    try:
        await reminder.save(update_fields=["is_completed", "open_key", "updated_at"])
    except Exception as e:
        raise handle_db_error(e, "reminder update")
    return reminder


async def delete_reminder(user_id, reminder_id) -> None:
    reminder = await _get_reminder_for(user_id, reminder_id)
    await reminder.delete()
