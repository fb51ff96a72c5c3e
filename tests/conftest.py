"""
Pytest configuration and fixtures
"""
import os

# Keep app.main's module-level app away from real infrastructure
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENABLE_SCHEDULER", "False")
os.environ.setdefault("CALENDAR_INTEGRATION", "none")

from datetime import date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import Base, create_session_factory, init_db
from app.exceptions import DispatchFailure
from app.services.availability_store import AvailabilityStore
from app.services.booking_service import BookingService
from app.services.date_converter import DateConverter


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

FIXED_NOW = datetime(2024, 6, 9, 14, 0)


class FixedClock:
    """Clock that returns a settable time"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current


class RecordingDispatcher:
    """Notification dispatcher that records calls instead of sending"""

    def __init__(self):
        self.reminders = []
        self.confirmations = []
        self.admin_alerts = []
        self.status_updates = []
        self.fail_reminders = False
        self.raise_on_reminder = None

    def send_reminder(self, booking, tier):
        if self.raise_on_reminder is not None:
            raise self.raise_on_reminder
        if self.fail_reminders:
            return False
        self.reminders.append((booking.id, tier))
        return True

    def send_confirmation(self, booking):
        self.confirmations.append(booking.id)
        return True

    def send_admin_alert(self, booking):
        self.admin_alerts.append(booking.id)
        return True

    def send_status_update(self, booking):
        self.status_updates.append((booking.id, booking.status))
        return True


class RecordingCalendar:
    """Calendar sync client that keeps events in a dict"""

    def __init__(self):
        self.events = {}
        self.deleted = []
        self.fail_upsert = False
        self.fail_delete = False
        self._next_id = 1

    def upsert_event(self, booking):
        if self.fail_upsert:
            raise DispatchFailure("calendar unavailable")
        remote_id = booking.google_event_id
        if not remote_id:
            remote_id = f"evt-{self._next_id}"
            self._next_id += 1
        self.events[remote_id] = booking.status
        return remote_id

    def delete_event(self, remote_id):
        if self.fail_delete:
            raise DispatchFailure("calendar unavailable")
        self.events.pop(remote_id, None)
        self.deleted.append(remote_id)


@pytest.fixture
def test_engine():
    """Create test database engine; StaticPool shares one in-memory database across threads"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory):
    return AvailabilityStore(session_factory)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def calendar():
    return RecordingCalendar()


@pytest.fixture
def converter(clock):
    return DateConverter("gregorian", "Y-m-d", clock)


@pytest.fixture
def jalali_converter(clock):
    return DateConverter("jalali", "Y-m-d", clock)


@pytest.fixture
def booking_service(store, converter, dispatcher, calendar):
    return BookingService(store, converter, dispatcher, calendar)


@pytest.fixture
def test_settings(tmp_path):
    """Settings with every external integration switched off"""
    return Settings(
        database_url=TEST_DATABASE_URL,
        calendar_type="gregorian",
        enable_scheduler=False,
        enable_notifications=False,
        admin_email="admin@example.com",
        admin_api_token="test-admin-token",
        smtp_host="",
        calendar_integration="none",
        ical_directory=str(tmp_path / "icals"),
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_phone_number="",
    )


@pytest.fixture
def booking_data():
    """Valid booking form submission"""
    return {
        "customer_name": "Sara Ahmadi",
        "customer_email": "sara@example.com",
        "customer_phone": "+989121234567",
        "booking_date": "2024-06-10",
        "booking_time": "14:00",
        "business_status": "Startup",
        "target_country": "Germany",
        "team_size": 3,
        "services": ["Visa", "Business plan"],
        "team_description": "Three engineers",
        "idea_description": "Logistics marketplace",
        "service_description": "Help with the residence permit",
        "notes": "Prefers afternoons",
    }


@pytest.fixture
def make_booking(store):
    """Insert a booking directly through the store"""

    def _make(booking_date=date(2024, 6, 10), booking_time=time(14, 0), status="pending", **extra):
        data = {
            "customer_name": "Test Customer",
            "customer_email": "customer@example.com",
            "customer_phone": "+10000000000",
            "booking_date": booking_date,
            "booking_time": booking_time,
            "status": status,
        }
        data.update(extra)
        return store.create(data)

    return _make


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
