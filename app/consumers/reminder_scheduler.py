import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from app.core.clock import Clock, SystemClock
from app.core.config import (
    SCHEDULER_INITIAL_DELAY,
    EXPIRY_SWEEP_INTERVAL,
    LOW_STOCK_SWEEP_INTERVAL,
    USAGE_SWEEP_INTERVAL,
    SCHEDULED_REMINDER_INTERVAL,
)
from app.core.db import init_db, close_db
from app.services.notification_service import NotificationService, notification_service
from app.services.reminder_service import (
    sweep_expiring,
    sweep_low_stock,
    sweep_usage_predictions,
    process_scheduled_reminders,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("reminder_scheduler")


class ReminderScheduler:
    """
    Runs each reminder pass on its own timer. A pass never overlaps itself
    (the next run starts only after the previous one finished and the
    interval elapsed), but different passes may run at the same time.
    A failing pass is logged and retried at its next interval.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        notifier: Optional[NotificationService] = None,
        initial_delay: float = SCHEDULER_INITIAL_DELAY,
    ):
        self.clock = clock or SystemClock()
        self.notifier = notifier or notification_service
        self.initial_delay = initial_delay
        self.tasks: List[asyncio.Task] = []
        self.jobs: Dict[str, tuple] = {
            "expiry": (sweep_expiring, EXPIRY_SWEEP_INTERVAL),
            "low_stock": (sweep_low_stock, LOW_STOCK_SWEEP_INTERVAL),
            "usage_prediction": (sweep_usage_predictions, USAGE_SWEEP_INTERVAL),
            "scheduled_reminders": (process_scheduled_reminders, SCHEDULED_REMINDER_INTERVAL),
        }

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self.tasks)

    async def run_job(self, name: str, job: Callable[..., Awaitable]) -> bool:
        """Runs one pass, containing any failure. Returns True on success."""
        log.info(f"Running {name} job...")
        try:
            await job(clock=self.clock, notifier=self.notifier)
            return True
        except Exception:
            log.exception(f"Reminder job '{name}' failed; will retry at next interval.")
            return False

    async def _loop(self, name: str, job: Callable[..., Awaitable], interval: float):
        await asyncio.sleep(self.initial_delay)
        while True:
            await self.run_job(name, job)
            await asyncio.sleep(interval)

    def start(self):
        if self.running:
            return
        log.info("Starting reminder scheduler...")
        self.tasks = [
            asyncio.create_task(self._loop(name, job, interval), name=f"reminder-{name}")
            for name, (job, interval) in self.jobs.items()
        ]

    async def stop(self):
        log.info("Stopping reminder scheduler...")
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []


async def start_reminder_scheduler():
    """Main loop for the standalone scheduler service."""
    await init_db()
    scheduler = ReminderScheduler()
    scheduler.start()
    log.info("--- Reminder Scheduler Service Started ---")
    try:
        await asyncio.gather(*scheduler.tasks)
    finally:
        await scheduler.stop()
        await close_db()

if __name__ == "__main__":
    try:
        asyncio.run(start_reminder_scheduler())
    except KeyboardInterrupt:
        log.info("Reminder scheduler stopped.")
