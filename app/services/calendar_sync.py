"""
Calendar sync helpers shared by the Google and iCal clients
"""
from app.services.email_templates import status_label


def event_summary(booking) -> str:
    return f"Consultation: {booking.customer_name} - {booking.target_country or 'Unknown country'}"


def event_description(booking, timezone: str) -> str:
    """Event description with all booking details"""
    parts = [
        "Consultation details",
        "=" * 50,
        "",
        f"Name: {booking.customer_name}",
        f"Email: {booking.customer_email}",
        f"Phone: {booking.customer_phone}",
        "",
    ]

    for label, value in (
        ("Business status", booking.business_status),
        ("Target country", booking.target_country),
        ("Team", booking.team_description),
        ("Idea", booking.idea_description),
        ("Services needed", booking.service_description),
        ("Notes", booking.notes),
    ):
        if value:
            parts.extend([f"{label}:", value, ""])

    parts.extend([
        "-" * 50,
        f"Booking status: {status_label(booking.status or 'pending')}",
        f"Booking number: #{booking.id}",
        "",
        f"Times are in {timezone}",
    ])
    return "\n".join(parts)


class NullCalendarSync:
    """Calendar client used when no integration is configured"""

    def upsert_event(self, booking) -> str | None:
        return None

    def delete_event(self, remote_id: str) -> None:
        return None
