"""
Plain-text email templates
Each template returns (subject, body)
"""

STATUS_LABELS = {
    "pending": "Pending confirmation",
    "confirmed": "Confirmed",
    "cancelled": "Cancelled",
    "completed": "Completed",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def _details(booking, date_str: str, time_str: str) -> list[str]:
    lines = [
        f"Date: {date_str}",
        f"Time: {time_str}",
    ]
    if booking.business_status:
        lines.append(f"Business status: {booking.business_status}")
    if booking.target_country:
        lines.append(f"Target country: {booking.target_country}")
    if booking.notes:
        lines.append(f"Notes: {booking.notes}")
    lines.append(f"Status: {status_label(booking.status)}")
    return lines


def confirmation_email(booking, site_name: str, date_str: str, time_str: str) -> tuple[str, str]:
    subject = f"[{site_name}] Booking Confirmation"
    body = "\n".join([
        f"Hello {booking.customer_name},",
        "",
        "Thank you for your booking! Here are the details:",
        "",
        *_details(booking, date_str, time_str),
        "",
        "We will confirm your booking shortly. If you have any questions, please contact us.",
        "",
        f"{site_name}",
    ])
    return subject, body


def admin_notification_email(booking, site_name: str, date_str: str, time_str: str) -> tuple[str, str]:
    subject = f"[{site_name}] New Booking Received"
    lines = [
        f"A new booking (#{booking.id}) was received.",
        "",
        f"Name: {booking.customer_name}",
        f"Email: {booking.customer_email}",
        f"Phone: {booking.customer_phone}",
        *_details(booking, date_str, time_str),
    ]
    for label, value in (
        ("Team", booking.team_description),
        ("Idea", booking.idea_description),
        ("Services needed", booking.service_description),
    ):
        if value:
            lines.extend(["", f"{label}:", value])
    return subject, "\n".join(lines)


def status_update_email(booking, site_name: str, date_str: str, time_str: str) -> tuple[str, str]:
    subject = f"[{site_name}] Booking Status Updated"
    body = "\n".join([
        f"Hello {booking.customer_name},",
        "",
        f"The status of your booking is now: {status_label(booking.status)}.",
        "",
        *_details(booking, date_str, time_str),
        "",
        f"{site_name}",
    ])
    return subject, body


def reminder_24h_email(booking, site_name: str, date_str: str, time_str: str) -> tuple[str, str]:
    subject = f"[{site_name}] Reminder: Your Appointment Tomorrow"
    body = "\n".join([
        f"Hello {booking.customer_name},",
        "",
        f"This is a reminder that your appointment is tomorrow, {date_str} at {time_str}.",
        "",
        *_details(booking, date_str, time_str),
        "",
        f"{site_name}",
    ])
    return subject, body


def reminder_30min_email(booking, site_name: str, date_str: str, time_str: str) -> tuple[str, str]:
    subject = f"[{site_name}] Reminder: Your Appointment in 30 Minutes"
    body = "\n".join([
        f"Hello {booking.customer_name},",
        "",
        f"Your appointment starts in about 30 minutes ({date_str} at {time_str}).",
        "",
        f"{site_name}",
    ])
    return subject, body


REMINDER_TEMPLATES = {
    "24h": reminder_24h_email,
    "30min": reminder_30min_email,
}
