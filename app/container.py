"""
Service wiring
Builds the store, clients and schedulers the API and background jobs share
"""
import logging
from dataclasses import dataclass

from app.config import Settings
from app.database import create_db_engine, create_session_factory, init_db
from app.services.availability_store import AvailabilityStore
from app.services.booking_service import BookingService
from app.services.calendar_sync import NullCalendarSync
from app.services.clock import SystemClock
from app.services.date_converter import DateConverter
from app.services.email_service import EmailService
from app.services.ical_service import ICalCalendarService
from app.services.interfaces import CalendarSyncClient, NotificationDispatcher
from app.services.notifications import NotificationService
from app.services.scheduler import ReminderScheduler
from app.services.sms_service import TwilioService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    date_converter: DateConverter
    store: AvailabilityStore
    notifier: NotificationDispatcher
    calendar: CalendarSyncClient
    ical: ICalCalendarService
    booking_service: BookingService
    reminder_scheduler: ReminderScheduler


def build_calendar_client(settings: Settings) -> CalendarSyncClient:
    """Calendar sync client for the configured integration"""
    if settings.calendar_integration == "google":
        # Imported here so the Google client libraries load only when used
        from app.services.google_calendar import GoogleCalendarService

        return GoogleCalendarService(settings)
    if settings.calendar_integration == "ical":
        return ICalCalendarService(settings)
    return NullCalendarSync()


def build_services(
    settings: Settings,
    session_factory=None,
    clock=None,
    notifier=None,
    calendar=None,
    scheduler=None,
) -> Services:
    """
    Wire up all services. Collaborators passed in replace the defaults,
    which is how tests swap in fakes.
    """
    if session_factory is None:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        session_factory = create_session_factory(engine)

    clock = clock or SystemClock(settings.timezone)
    date_converter = DateConverter.from_settings(settings, clock)
    store = AvailabilityStore(session_factory)

    if notifier is None:
        notifier = NotificationService(
            settings,
            EmailService(settings),
            date_converter,
            TwilioService(settings),
        )
    if calendar is None:
        calendar = build_calendar_client(settings)

    logger.info(
        f"Services ready: calendar={settings.calendar_type}, "
        f"integration={settings.calendar_integration}"
    )

    return Services(
        settings=settings,
        date_converter=date_converter,
        store=store,
        notifier=notifier,
        calendar=calendar,
        ical=ICalCalendarService(settings),
        booking_service=BookingService(store, date_converter, notifier, calendar),
        reminder_scheduler=ReminderScheduler(
            store,
            notifier,
            clock,
            interval_minutes=settings.reminder_interval_minutes,
            scheduler=scheduler,
        ),
    )
