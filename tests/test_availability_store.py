"""
Tests for the availability store
"""
from datetime import date, datetime, time

import pytest
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.schema import CreateIndex

from app.database import Base
from app.exceptions import SlotUnavailable, StorageError
from app.models import Booking
from app.services.availability_store import (
    AvailabilityStore,
    coerce_time,
    sanitize_booking_data,
)


@pytest.mark.unit
class TestSanitizeBookingData:
    """Test input cleaning before persistence"""

    def test_drops_unknown_and_flag_fields(self):
        data = sanitize_booking_data({
            "customer_name": "  Ali   Rezaei ",
            "id": 99,
            "reminder_sent_24h": True,
            "active_slot": True,
            "unexpected": "x",
        })
        assert data == {"customer_name": "Ali Rezaei"}

    def test_lists_are_joined(self):
        data = sanitize_booking_data({"services": ["Visa", "Tax advice"]})
        assert data["services"] == "Visa, Tax advice"

    def test_textarea_keeps_line_breaks(self):
        data = sanitize_booking_data({"notes": "line one\r\nline two\x00"})
        assert data["notes"] == "line one\nline two"

    def test_team_size_is_non_negative(self):
        assert sanitize_booking_data({"team_size": "-4"})["team_size"] == 4

    def test_status_sets_slot_latch(self):
        assert sanitize_booking_data({"status": "pending"})["active_slot"] is True
        assert sanitize_booking_data({"status": "completed"})["active_slot"] is True
        assert sanitize_booking_data({"status": "cancelled"})["active_slot"] is None
        assert "active_slot" not in sanitize_booking_data({"notes": "x"})

    def test_coerce_time(self):
        assert coerce_time("09:30") == time(9, 30)
        assert coerce_time("09:30:15") == time(9, 30, 15)
        with pytest.raises(ValueError):
            coerce_time("9.30am")


@pytest.mark.integration
class TestSlotAvailability:
    """Test slot conflict detection"""

    def test_empty_slot_is_available(self, store):
        assert store.is_slot_available(date(2024, 6, 10), time(14, 0))

    def test_active_booking_blocks_slot(self, store, make_booking):
        make_booking()
        assert not store.is_slot_available(date(2024, 6, 10), time(14, 0))
        assert store.is_slot_available(date(2024, 6, 10), time(15, 0))
        assert store.is_slot_available(date(2024, 6, 11), time(14, 0))

    def test_confirmed_booking_blocks_slot(self, store, make_booking):
        make_booking(status="confirmed")
        assert not store.is_slot_available("2024-06-10", "14:00")

    def test_cancelled_booking_frees_slot(self, store, make_booking):
        """Cancelling frees the slot for a new booking"""
        booking_id = make_booking()
        store.update(booking_id, {"status": "cancelled"})

        assert store.is_slot_available(date(2024, 6, 10), time(14, 0))
        new_id = make_booking()
        assert new_id != booking_id

    def test_completed_booking_blocks_slot(self, store, make_booking):
        make_booking(status="completed")
        assert not store.is_slot_available(date(2024, 6, 10), time(14, 0))

    def test_exclude_id_ignores_own_booking(self, store, make_booking):
        booking_id = make_booking()
        assert store.is_slot_available(date(2024, 6, 10), time(14, 0), exclude_id=booking_id)

    def test_unique_index_rejects_double_booking(self, store, make_booking):
        """A second insert for an active slot fails even without a prior check"""
        make_booking()
        with pytest.raises(SlotUnavailable):
            make_booking()

    def test_several_cancelled_bookings_may_share_a_slot(self, store, make_booking):
        make_booking(status="cancelled")
        make_booking(status="cancelled")
        make_booking()
        assert len(store.list_bookings()) == 3

    def test_cancelling_releases_slot_latch(self, store, make_booking):
        booking_id = make_booking()
        assert store.get(booking_id).active_slot is True

        store.update(booking_id, {"status": "cancelled"})
        assert store.get(booking_id).active_slot is None

        store.update(booking_id, {"status": "confirmed"})
        assert store.get(booking_id).active_slot is True

    def test_created_cancelled_booking_holds_no_latch(self, store, make_booking):
        assert store.get(make_booking(status="cancelled")).active_slot is None

    def test_unique_index_rejects_reactivating_into_taken_slot(self, store, make_booking):
        first = make_booking()
        store.update(first, {"status": "cancelled"})
        make_booking()

        with pytest.raises(SlotUnavailable):
            store.update(first, {"status": "pending"})
        assert store.get(first).status == "cancelled"

    @pytest.mark.parametrize("dialect", [mysql, postgresql, sqlite], ids=["mysql", "postgresql", "sqlite"])
    def test_unique_slot_index_needs_no_partial_index_support(self, dialect):
        """The same plain unique index guards the slot on every backend"""
        index = next(i for i in Booking.__table__.indexes if i.name == "uq_bookings_active_slot")
        ddl = str(CreateIndex(index).compile(dialect=dialect.dialect()))

        assert ddl.startswith("CREATE UNIQUE INDEX uq_bookings_active_slot")
        assert "booking_date, booking_time, active_slot" in ddl
        assert "WHERE" not in ddl

    def test_booked_times_for_date(self, store, make_booking):
        make_booking(booking_time=time(16, 0))
        make_booking(booking_time=time(10, 0))
        make_booking(booking_time=time(12, 0), status="cancelled")
        make_booking(booking_date=date(2024, 6, 11), booking_time=time(9, 0))

        assert store.get_booked_times_for_date(date(2024, 6, 10)) == [time(10, 0), time(16, 0)]

    def test_booked_times_skip_lone_cancelled_booking(self, store, make_booking):
        make_booking(booking_date=date(2024, 6, 20), status="cancelled")
        assert store.get_booked_times_for_date(date(2024, 6, 20)) == []


@pytest.mark.integration
class TestBookingRecords:
    """Test create, update, delete and listing"""

    def test_create_defaults_to_pending(self, store, make_booking):
        booking = store.get(make_booking(status=None))
        assert booking.status == "pending"
        assert booking.reminder_sent_24h is False
        assert booking.reminder_sent_30min is False
        assert booking.created_at is not None

    def test_update_missing_booking(self, store):
        assert store.update(12345, {"notes": "x"}) is False

    def test_delete(self, store, make_booking):
        booking_id = make_booking()
        assert store.delete(booking_id) is True
        assert store.get(booking_id) is None
        assert store.delete(booking_id) is False

    def test_list_filters_and_order(self, store, make_booking):
        """Newest slot first; filters combine"""
        first = make_booking(booking_date=date(2024, 6, 10), booking_time=time(9, 0), status="confirmed")
        second = make_booking(booking_date=date(2024, 6, 12), booking_time=time(9, 0))
        third = make_booking(booking_date=date(2024, 6, 12), booking_time=time(11, 0), customer_email="vip@example.com")
        make_booking(booking_date=date(2024, 7, 1), booking_time=time(9, 0), status="cancelled")

        ids = [b.id for b in store.list_bookings(date_from=date(2024, 6, 1), date_to=date(2024, 6, 30))]
        assert ids == [third, second, first]

        assert [b.id for b in store.list_bookings(status="confirmed")] == [first]
        assert [b.id for b in store.list_bookings(customer_email="vip@example.com")] == [third]
        assert store.list_bookings(status="completed") == []

    def test_storage_error_on_broken_database(self, session_factory, test_engine):
        store = AvailabilityStore(session_factory)
        Base.metadata.drop_all(bind=test_engine)
        with pytest.raises(StorageError):
            store.get(1)


@pytest.mark.integration
class TestReminderWindow:
    """Test reminder window queries and flags"""

    def test_window_is_half_open(self, store, make_booking):
        at_start = make_booking(booking_date=date(2024, 6, 10), booking_time=time(13, 0))
        inside = make_booking(booking_date=date(2024, 6, 10), booking_time=time(14, 0))
        make_booking(booking_date=date(2024, 6, 10), booking_time=time(15, 0))  # at end

        found = store.find_bookings_in_window(
            datetime(2024, 6, 10, 13, 0),
            datetime(2024, 6, 10, 15, 0),
            statuses=("pending", "confirmed"),
            reminder_flag="24h",
        )
        assert [b.id for b in found] == [at_start, inside]

    def test_window_spans_midnight(self, store, make_booking):
        late = make_booking(booking_date=date(2024, 6, 10), booking_time=time(23, 30))
        early = make_booking(booking_date=date(2024, 6, 11), booking_time=time(0, 30))
        make_booking(booking_date=date(2024, 6, 11), booking_time=time(1, 30))

        found = store.find_bookings_in_window(
            datetime(2024, 6, 10, 23, 0),
            datetime(2024, 6, 11, 1, 0),
            statuses=("pending",),
            reminder_flag="24h",
        )
        assert [b.id for b in found] == [late, early]

    def test_status_and_flag_filters(self, store, make_booking):
        eligible = make_booking(booking_time=time(14, 0))
        make_booking(booking_time=time(14, 10), status="cancelled")
        make_booking(booking_time=time(14, 20), status="completed")
        flagged = make_booking(booking_time=time(14, 30))
        store.mark_reminder_sent(flagged, "30min")

        found = store.find_bookings_in_window(
            datetime(2024, 6, 10, 13, 0),
            datetime(2024, 6, 10, 15, 0),
            statuses=("pending", "confirmed"),
            reminder_flag="30min",
        )
        assert [b.id for b in found] == [eligible]

        # The other tier's flag is independent
        found_24h = store.find_bookings_in_window(
            datetime(2024, 6, 10, 13, 0),
            datetime(2024, 6, 10, 15, 0),
            statuses=("pending", "confirmed"),
            reminder_flag="24h",
        )
        assert [b.id for b in found_24h] == [eligible, flagged]

    def test_mark_reminder_sent_is_idempotent(self, store, make_booking):
        booking_id = make_booking()
        assert store.mark_reminder_sent(booking_id, "24h") is True
        assert store.mark_reminder_sent(booking_id, "24h") is True

        booking = store.get(booking_id)
        assert booking.reminder_sent_24h is True
        assert booking.reminder_sent_30min is False

    def test_mark_reminder_sent_missing_booking(self, store):
        assert store.mark_reminder_sent(999, "24h") is False

    def test_unknown_reminder_flag(self, store):
        with pytest.raises(ValueError):
            store.mark_reminder_sent(1, "1h")

    def test_flags_are_not_writable_through_update(self, store, make_booking):
        booking_id = make_booking()
        store.mark_reminder_sent(booking_id, "24h")
        store.update(booking_id, {"reminder_sent_24h": False, "booking_time": time(15, 0)})
        assert store.get(booking_id).reminder_sent_24h is True
