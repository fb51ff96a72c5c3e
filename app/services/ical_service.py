"""
iCal Service
Writes one .ics file per booking
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

from app.exceptions import DispatchFailure
from app.services.calendar_sync import event_description, event_summary

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[\w.-]+$")

ICAL_STATUS = {
    "pending": "TENTATIVE",
    "confirmed": "CONFIRMED",
    "completed": "CONFIRMED",
    "cancelled": "CANCELLED",
}


def escape_text(value: str) -> str:
    """Escape a TEXT property value"""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str, limit: int = 75) -> str:
    """Fold a content line at 75 octets without splitting a character"""
    chunks = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        # Continuation lines start with a space, which counts toward the limit
        if size + width > limit:
            chunks.append(current)
            current = " "
            size = 1
        current += char
        size += width
    chunks.append(current)
    return "\r\n".join(chunks)


class ICalCalendarService:
    """Calendar sync client that stores bookings as .ics files"""

    def __init__(self, settings, directory=None):
        self.directory = Path(directory or settings.ical_directory)
        self.timezone = settings.timezone
        self.duration = timedelta(minutes=settings.appointment_duration_minutes)
        self.site_name = settings.site_name
        self.admin_email = settings.admin_email

    @staticmethod
    def remote_id_for(booking) -> str:
        return f"hb-booking-{booking.id}"

    def path_for(self, remote_id: str) -> Path:
        if not _SAFE_ID.match(remote_id):
            raise DispatchFailure(f"Invalid iCal event id: {remote_id!r}")
        return self.directory / f"{remote_id}.ics"

    def render(self, booking) -> str:
        """Render a booking as a VCALENDAR document"""
        start = datetime.combine(booking.booking_date, booking.booking_time)
        end = start + self.duration
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//HB Booking//Booking Service//EN",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
            "BEGIN:VEVENT",
            f"UID:{self.remote_id_for(booking)}@hb-booking",
            f"DTSTAMP:{stamp}",
            f"DTSTART;TZID={self.timezone}:{start.strftime('%Y%m%dT%H%M%S')}",
            f"DTEND;TZID={self.timezone}:{end.strftime('%Y%m%dT%H%M%S')}",
            f"SUMMARY:{escape_text(event_summary(booking))}",
            f"DESCRIPTION:{escape_text(event_description(booking, self.timezone))}",
        ]
        if booking.target_country:
            lines.append(f"LOCATION:{escape_text(booking.target_country)}")
        if self.admin_email:
            lines.append(f"ORGANIZER;CN={escape_text(self.site_name)}:mailto:{self.admin_email}")
        lines.extend([
            f"ATTENDEE;CN={escape_text(booking.customer_name)};RSVP=TRUE:mailto:{booking.customer_email}",
            f"STATUS:{ICAL_STATUS.get(booking.status, 'TENTATIVE')}",
            "SEQUENCE:0",
            "END:VEVENT",
            "END:VCALENDAR",
        ])
        return "\r\n".join(fold_line(line) for line in lines) + "\r\n"

    def upsert_event(self, booking) -> str:
        remote_id = booking.google_event_id or self.remote_id_for(booking)
        path = self.path_for(remote_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(self.render(booking), encoding="utf-8", newline="")
        except OSError as e:
            raise DispatchFailure(f"Failed to write iCal file for booking {booking.id}: {e}") from e

        logger.info(f"iCal file {path.name} written for booking {booking.id}")
        return remote_id

    def delete_event(self, remote_id: str) -> None:
        path = self.path_for(remote_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DispatchFailure(f"Failed to delete iCal file {path.name}: {e}") from e
        logger.info(f"iCal file {path.name} deleted")
