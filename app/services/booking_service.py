"""
Booking Service
Validates booking input and coordinates storage, calendar sync and notifications
"""
import logging
from datetime import date

from email_validator import EmailNotValidError, validate_email

from app.exceptions import (
    DateConversionError,
    DispatchFailure,
    NotFound,
    SlotUnavailable,
    StorageError,
    ValidationError,
)
from app.models import BOOKING_STATUSES, Booking
from app.services.availability_store import AvailabilityStore, coerce_time
from app.services.date_converter import DateConverter
from app.services.interfaces import CalendarSyncClient, NotificationDispatcher

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "customer_name": "Customer name is required",
    "customer_email": "Valid email address is required",
    "customer_phone": "Phone number is required",
    "booking_date": "Booking date is required",
    "booking_time": "Booking time is required",
    "business_status": "Business status is required",
    "target_country": "Target country is required",
    "team_description": "Team description is required",
    "idea_description": "Idea description is required",
    "service_description": "Service description is required",
}

EDITABLE_FIELDS = (
    *REQUIRED_FIELDS,
    "team_size",
    "services",
    "notes",
    "status",
)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


class BookingService:
    """Create, update and delete bookings"""

    def __init__(
        self,
        store: AvailabilityStore,
        date_converter: DateConverter,
        notifier: NotificationDispatcher,
        calendar: CalendarSyncClient,
    ):
        self.store = store
        self.date_converter = date_converter
        self.notifier = notifier
        self.calendar = calendar

    # Validation

    def _validate_email(self, value: str) -> str:
        try:
            return validate_email(value.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValidationError(REQUIRED_FIELDS["customer_email"], "customer_email") from e

    def _validate_date(self, value, field: str = "booking_date") -> date:
        """Validate a user-facing date in the active calendar and convert it to Gregorian"""
        if isinstance(value, date):
            return value
        if not self.date_converter.is_valid_date(value):
            raise DateConversionError(f"Invalid date: {value}", field)
        try:
            return self.date_converter.prepare_for_storage(value)
        except DateConversionError as e:
            raise DateConversionError(e.message, field) from e

    def _validate_time(self, value):
        try:
            return coerce_time(value)
        except ValueError as e:
            raise ValidationError(f"Invalid time: {value}", "booking_time") from e

    def _validate_team_size(self, value) -> int:
        try:
            team_size = int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError("Team size must be a number", "team_size") from e
        if team_size < 0:
            raise ValidationError("Team size cannot be negative", "team_size")
        return team_size

    def _validate_status(self, value: str) -> str:
        if value not in BOOKING_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(BOOKING_STATUSES)}", "status")
        return value

    def _clean(self, data: dict) -> dict:
        """Validate and normalize the fields present in data"""
        cleaned = dict(data)
        if "customer_email" in cleaned:
            cleaned["customer_email"] = self._validate_email(cleaned["customer_email"])
        if "booking_date" in cleaned:
            cleaned["booking_date"] = self._validate_date(cleaned["booking_date"])
        if "booking_time" in cleaned:
            cleaned["booking_time"] = self._validate_time(cleaned["booking_time"])
        if "team_size" in cleaned:
            cleaned["team_size"] = self._validate_team_size(cleaned["team_size"])
        if "status" in cleaned:
            cleaned["status"] = self._validate_status(cleaned["status"])
        return cleaned

    # Side effects

    def _notify(self, send, booking: Booking, label: str) -> bool:
        try:
            sent = send(booking)
        except Exception as e:
            logger.warning(f"Failed to send {label} for booking {booking.id}: {e}")
            return False
        if not sent:
            logger.warning(f"{label.capitalize()} for booking {booking.id} was not sent")
        return bool(sent)

    def _sync_calendar(self, booking: Booking) -> Booking:
        """Push the booking to the calendar and remember the remote event id"""
        try:
            remote_id = self.calendar.upsert_event(booking)
        except Exception as e:
            logger.warning(f"Calendar sync failed for booking {booking.id}: {e}")
            return booking

        if remote_id and remote_id != booking.google_event_id:
            try:
                self.store.update(booking.id, {"google_event_id": remote_id})
            except StorageError as e:
                logger.error(f"Calendar event {remote_id} created but not saved on booking {booking.id}: {e}")
                return booking
            booking.google_event_id = remote_id
        return booking

    # Operations

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.store.get(booking_id)
        if booking is None:
            raise NotFound()
        return booking

    def list_bookings(
        self,
        status: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        customer_email: str | None = None,
    ) -> list[Booking]:
        """List bookings; date filters are given in the active calendar"""
        if status:
            self._validate_status(status)
        return self.store.list_bookings(
            status=status or None,
            date_from=self._validate_date(date_from, "date_from") if not _is_blank(date_from) else None,
            date_to=self._validate_date(date_to, "date_to") if not _is_blank(date_to) else None,
            customer_email=customer_email or None,
        )

    def check_availability(self, date_str: str, time_str: str) -> bool:
        return self.store.is_slot_available(
            self._validate_date(date_str, "date"),
            self._validate_time(time_str),
        )

    def get_booked_times(self, date_str: str) -> list[str]:
        booked = self.store.get_booked_times_for_date(self._validate_date(date_str, "date"))
        return [booked_time.strftime("%H:%M") for booked_time in booked]

    def create_booking(self, raw: dict) -> Booking:
        """
        Validate and store a new booking, then sync it and notify.

        Args:
            raw: Booking fields as submitted by the booking form

        Returns:
            The created booking

        Raises:
            ValidationError: if a required field is missing or malformed
            SlotUnavailable: if an active booking already holds the slot
        """
        for field, message in REQUIRED_FIELDS.items():
            if _is_blank(raw.get(field)):
                raise ValidationError(message, field)

        data = {
            field: raw[field]
            for field in EDITABLE_FIELDS
            if field != "status" and raw.get(field) is not None
        }
        data = self._clean(data)
        data["status"] = "pending"

        if not self.store.is_slot_available(data["booking_date"], data["booking_time"]):
            raise SlotUnavailable()

        # The unique slot index still rejects a concurrent insert here
        booking_id = self.store.create(data)
        booking = self.get_booking(booking_id)

        booking = self._sync_calendar(booking)
        self._notify(self.notifier.send_confirmation, booking, "confirmation email")
        self._notify(self.notifier.send_admin_alert, booking, "admin notification")
        return booking

    def update_booking(self, booking_id: int, patch: dict) -> Booking:
        """
        Apply a partial update.

        Date, time or status changes are pushed to the calendar; a status
        change also emails the customer.
        """
        current = self.get_booking(booking_id)

        changes = {field: value for field, value in patch.items() if field in EDITABLE_FIELDS and value is not None}
        for field, value in changes.items():
            if field in REQUIRED_FIELDS and _is_blank(value):
                raise ValidationError(REQUIRED_FIELDS[field], field)
        changes = self._clean(changes)

        new_date = changes.get("booking_date", current.booking_date)
        new_time = changes.get("booking_time", current.booking_time)
        new_status = changes.get("status", current.status)
        slot_changed = (new_date, new_time) != (current.booking_date, current.booking_time)
        status_changed = new_status != current.status

        if new_status != "cancelled" and (slot_changed or current.status == "cancelled"):
            if not self.store.is_slot_available(new_date, new_time, exclude_id=booking_id):
                raise SlotUnavailable()

        if not self.store.update(booking_id, changes):
            raise NotFound()
        booking = self.get_booking(booking_id)

        if slot_changed or status_changed:
            booking = self._sync_calendar(booking)
        if status_changed:
            self._notify(self.notifier.send_status_update, booking, "status update email")
        return booking

    def delete_booking(self, booking_id: int) -> None:
        """
        Delete a booking. The remote calendar event goes first, so a failed
        remote delete leaves the local record in place for a retry.

        Raises:
            DispatchFailure: if the calendar event could not be removed
        """
        booking = self.get_booking(booking_id)

        if booking.google_event_id:
            try:
                self.calendar.delete_event(booking.google_event_id)
            except DispatchFailure as e:
                logger.warning(f"Booking {booking_id} kept: {e}")
                raise
            except Exception as e:
                logger.warning(f"Booking {booking_id} kept: calendar delete failed: {e}")
                raise DispatchFailure(f"Failed to remove calendar event: {e}") from e

        if not self.store.delete(booking_id):
            raise NotFound()
