"""Background scheduler for booking housekeeping."""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from court_booking.services.booking_store import BookingStore

logger = logging.getLogger(__name__)


class CompletionScheduler:
    """Periodically moves finished CONFIRMED bookings to COMPLETED."""

    def __init__(self, store: BookingStore, clock, interval_minutes: int = 5):
        """Initialize the scheduler."""
        self.store = store
        self.clock = clock
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        logger.info("Starting completion scheduler")

        self.scheduler.add_job(
            self.sweep,
            IntervalTrigger(minutes=self.interval_minutes),
            id="completion_sweep",
            name="Complete finished bookings",
            replace_existing=True,
        )

        self.scheduler.start()
        self.running = True
        logger.info("Completion scheduler started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping completion scheduler")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Completion scheduler stopped")

    async def sweep(self) -> int:
        """
        Complete every CONFIRMED booking whose end time has passed.

        A finished booking cannot overlap any booking that may still be
        admitted, so this runs without taking court locks.

        Returns:
            Number of bookings completed
        """
        now = self.clock.now()
        try:
            completed = await self.store.complete_finished_bookings(now)
        except Exception as e:
            logger.error(f"Completion sweep failed: {e}", exc_info=True)
            return 0

        if completed:
            logger.info(f"Marked {completed} finished booking(s) as completed")
        else:
            logger.debug("No finished bookings to complete")
        return completed
