"""
APScheduler Service
Sends 24-hour and 30-minute reminder emails for upcoming bookings
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.models import ACTIVE_STATUSES
from app.services.availability_store import AvailabilityStore
from app.services.interfaces import Clock, NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderTier:
    """A look-ahead reminder window, relative to the scan time"""

    name: str
    window_start: timedelta
    window_end: timedelta

    @property
    def width(self) -> timedelta:
        return self.window_end - self.window_start


# A tier is scanned at least once per window width, so no booking falls between scans
TIER_24H = ReminderTier("24h", timedelta(hours=23), timedelta(hours=25))
TIER_30MIN = ReminderTier("30min", timedelta(minutes=25), timedelta(minutes=35))
TIERS = (TIER_24H, TIER_30MIN)


@dataclass
class ReminderRunResult:
    tier: str
    found: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class ReminderScheduler:
    """Periodic two-tier reminder scan with one-way sent flags"""

    def __init__(
        self,
        store: AvailabilityStore,
        dispatcher: NotificationDispatcher,
        clock: Clock,
        interval_minutes: int = 15,
        scheduler=None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock
        self.interval_minutes = interval_minutes
        self.scheduler = scheduler or BackgroundScheduler()
        self._setup_jobs()

    def _setup_jobs(self):
        """One job per tier so a slow tier never holds up the other"""
        for tier in TIERS:
            self.scheduler.add_job(
                self.run_tier,
                IntervalTrigger(seconds=int(self.scan_interval(tier).total_seconds())),
                args=[tier],
                id=f"booking_reminders_{tier.name}",
                name=f"Send {tier.name} booking reminders",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )

    def scan_interval(self, tier: ReminderTier) -> timedelta:
        """The configured interval, capped at the tier's window width"""
        return min(timedelta(minutes=self.interval_minutes), tier.width)

    def window_for(self, tier: ReminderTier, now=None):
        """Return the [start, end) window for a tier"""
        now = now or self.clock.now()
        return now + tier.window_start, now + tier.window_end

    def run_tier(self, tier: ReminderTier) -> ReminderRunResult:
        """
        Send reminders for every eligible booking in the tier's window.
        A failed send leaves the flag unset so the next run retries.
        """
        result = ReminderRunResult(tier=tier.name)
        window_start, window_end = self.window_for(tier)

        bookings = self.store.find_bookings_in_window(
            window_start,
            window_end,
            statuses=ACTIVE_STATUSES,
            reminder_flag=tier.name,
        )
        result.found = len(bookings)

        for booking in bookings:
            try:
                sent = self.dispatcher.send_reminder(booking, tier.name)
            except Exception as e:
                logger.warning(f"Error sending {tier.name} reminder for booking {booking.id}: {e}")
                result.failed += 1
                result.errors.append(f"{booking.id}: {e}")
                continue

            if not sent:
                logger.warning(f"{tier.name} reminder for booking {booking.id} was not delivered, will retry")
                result.failed += 1
                continue

            try:
                self.store.mark_reminder_sent(booking.id, tier.name)
            except Exception as e:
                # The customer got the email; the next run may send it again
                logger.error(
                    f"{tier.name} reminder sent for booking {booking.id} but flag was not saved "
                    f"(possible duplicate): {e}"
                )
                result.errors.append(f"{booking.id}: {e}")
            result.sent += 1
            logger.info(f"{tier.name} reminder sent for booking {booking.id}")

        return result

    def send_reminders(self) -> dict[str, ReminderRunResult]:
        """Run both tiers; a failing tier does not stop the other"""
        results = {}
        for tier in TIERS:
            try:
                results[tier.name] = self.run_tier(tier)
            except Exception as e:
                logger.error(f"Error in {tier.name} reminders job: {e}")
                results[tier.name] = ReminderRunResult(tier=tier.name, errors=[str(e)])
        return results

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            intervals = ", ".join(
                f"{tier.name} every {self.scan_interval(tier)}" for tier in TIERS
            )
            logger.info(f"Reminder scheduler started ({intervals})")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Reminder scheduler stopped")
