"""
Availability Store
Persistence and slot/reminder-window queries over booking records
"""
import logging
import re
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Iterable

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.exceptions import SlotUnavailable, StorageError
from app.models import Booking, slot_latch

logger = logging.getLogger(__name__)

REMINDER_FLAGS = {
    "24h": "reminder_sent_24h",
    "30min": "reminder_sent_30min",
}

TEXT_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "business_status",
    "target_country",
    "status",
    "google_event_id",
)
TEXTAREA_FIELDS = ("services", "team_description", "idea_description", "service_description", "notes")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
_SLOT_INDEX_MARKERS = ("uq_bookings_active_slot", "bookings.booking_date, bookings.booking_time")


def sanitize_text(value) -> str:
    """Single-line text: drop control characters and collapse whitespace"""
    return _WHITESPACE.sub(" ", _CONTROL_CHARS.sub("", str(value))).strip()


def sanitize_textarea(value) -> str:
    """Multi-line text: drop control characters but keep line breaks"""
    lines = _CONTROL_CHARS.sub("", str(value)).replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "\n".join(line.strip() for line in lines).strip()


def coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def coerce_time(value) -> time:
    """Accept a time or an 'HH:MM' / 'HH:MM:SS' string"""
    if isinstance(value, time):
        return value.replace(microsecond=0)
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value!r}")


def sanitize_booking_data(data: dict) -> dict:
    """Whitelist and clean the writable booking columns"""
    sanitized = {}

    for field in TEXT_FIELDS:
        if data.get(field) is not None:
            sanitized[field] = sanitize_text(data[field])

    for field in TEXTAREA_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(sanitize_text(item) for item in value)
        sanitized[field] = sanitize_textarea(value)

    if data.get("team_size") is not None:
        sanitized["team_size"] = abs(int(data["team_size"]))

    if data.get("booking_date") is not None:
        sanitized["booking_date"] = coerce_date(data["booking_date"])

    if data.get("booking_time") is not None:
        sanitized["booking_time"] = coerce_time(data["booking_time"])

    if "status" in sanitized:
        sanitized["active_slot"] = slot_latch(sanitized["status"])

    return sanitized


def _is_slot_conflict(error: IntegrityError) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in _SLOT_INDEX_MARKERS)


class AvailabilityStore:
    """Booking persistence with slot-conflict and reminder-window queries"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        """One unit of work: commit on success, roll back and translate errors"""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if _is_slot_conflict(e):
                raise SlotUnavailable() from e
            logger.error(f"Integrity error in booking store: {e.orig}")
            raise StorageError(f"Integrity error: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error in booking store: {e}")
            raise StorageError(f"Database error: {e}") from e
        finally:
            session.close()

    def get(self, booking_id: int) -> Booking | None:
        with self._session() as session:
            return session.get(Booking, booking_id)

    def create(self, data: dict) -> int:
        """Insert a booking and return its id"""
        values = sanitize_booking_data(data)
        values.setdefault("status", "pending")
        values["active_slot"] = slot_latch(values["status"])
        booking = Booking(**values)

        with self._session() as session:
            session.add(booking)
            session.flush()
            booking_id = booking.id

        logger.info(f"Booking {booking_id} created for {values['booking_date']} {values['booking_time']}")
        return booking_id

    def update(self, booking_id: int, data: dict) -> bool:
        values = sanitize_booking_data(data)
        with self._session() as session:
            booking = session.get(Booking, booking_id)
            if booking is None:
                return False
            for key, value in values.items():
                setattr(booking, key, value)
        return True

    def delete(self, booking_id: int) -> bool:
        with self._session() as session:
            booking = session.get(Booking, booking_id)
            if booking is None:
                return False
            session.delete(booking)
        logger.info(f"Booking {booking_id} deleted")
        return True

    def is_slot_available(self, booking_date, booking_time, exclude_id: int | None = None) -> bool:
        """
        Check whether no active (non-cancelled) booking holds the slot.

        Args:
            booking_date: Gregorian date
            booking_time: Time of day
            exclude_id: Booking to ignore, used when a booking is edited in place

        Returns:
            True if the slot is free
        """
        slot_date = coerce_date(booking_date)
        slot_time = coerce_time(booking_time)

        with self._session() as session:
            query = session.query(Booking.id).filter(
                Booking.booking_date == slot_date,
                Booking.booking_time == slot_time,
                Booking.status != "cancelled",
            )
            if exclude_id is not None:
                query = query.filter(Booking.id != exclude_id)
            taken = session.query(query.exists()).scalar()

        logger.debug(f"Slot check {slot_date} {slot_time}: available={not taken}")
        return not taken

    def list_bookings(
        self,
        status: str | None = None,
        date_from=None,
        date_to=None,
        customer_email: str | None = None,
    ) -> list[Booking]:
        """Bookings matching all given filters, newest slot first"""
        with self._session() as session:
            query = session.query(Booking)
            if status:
                query = query.filter(Booking.status == status)
            if date_from:
                query = query.filter(Booking.booking_date >= coerce_date(date_from))
            if date_to:
                query = query.filter(Booking.booking_date <= coerce_date(date_to))
            if customer_email:
                query = query.filter(Booking.customer_email == customer_email)
            return query.order_by(Booking.booking_date.desc(), Booking.booking_time.desc()).all()

    def get_booked_times_for_date(self, booking_date) -> list[time]:
        with self._session() as session:
            rows = (
                session.query(Booking.booking_time)
                .filter(
                    Booking.booking_date == coerce_date(booking_date),
                    Booking.status != "cancelled",
                )
                .distinct()
                .order_by(Booking.booking_time.asc())
                .all()
            )
        return [row[0] for row in rows]

    def find_bookings_in_window(
        self,
        window_start: datetime,
        window_end: datetime,
        statuses: Iterable[str],
        reminder_flag: str,
    ) -> list[Booking]:
        """
        Bookings whose slot falls in [window_start, window_end), whose status is
        one of statuses and whose reminder flag is still unset.

        Args:
            window_start: Inclusive lower bound (local wall-clock time)
            window_end: Exclusive upper bound
            statuses: Eligible statuses
            reminder_flag: '24h' or '30min'
        """
        if reminder_flag not in REMINDER_FLAGS:
            raise ValueError(f"Unknown reminder flag: {reminder_flag}")
        flag = getattr(Booking, REMINDER_FLAGS[reminder_flag])

        start = window_start.replace(microsecond=0)
        end = window_end.replace(microsecond=0)

        after_start = or_(
            Booking.booking_date > start.date(),
            and_(Booking.booking_date == start.date(), Booking.booking_time >= start.time()),
        )
        before_end = or_(
            Booking.booking_date < end.date(),
            and_(Booking.booking_date == end.date(), Booking.booking_time < end.time()),
        )

        with self._session() as session:
            return (
                session.query(Booking)
                .filter(
                    after_start,
                    before_end,
                    Booking.status.in_(list(statuses)),
                    or_(flag == False, flag.is_(None)),  # noqa: E712
                )
                .order_by(Booking.booking_date.asc(), Booking.booking_time.asc())
                .all()
            )

    def mark_reminder_sent(self, booking_id: int, which: str) -> bool:
        """
        Latch a reminder flag. Setting an already-set flag is a no-op success.

        Returns:
            False only if the booking does not exist
        """
        if which not in REMINDER_FLAGS:
            raise ValueError(f"Unknown reminder flag: {which}")
        column = REMINDER_FLAGS[which]

        with self._session() as session:
            booking = session.get(Booking, booking_id)
            if booking is None:
                return False
            if not getattr(booking, column):
                setattr(booking, column, True)
        return True
