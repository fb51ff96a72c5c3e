"""
Notification dispatcher
Booking emails, with an SMS copy of reminders when Twilio is configured
"""
import logging

from app.services.date_converter import DateConverter
from app.services.email_service import EmailService
from app.services.email_templates import (
    REMINDER_TEMPLATES,
    admin_notification_email,
    confirmation_email,
    status_update_email,
)
from app.services.sms_service import TwilioService

logger = logging.getLogger(__name__)


class NotificationService:
    """Send booking notifications to customers and the admin"""

    def __init__(self, settings, email: EmailService, date_converter: DateConverter, sms: TwilioService | None = None):
        self.email = email
        self.sms = sms
        self.date_converter = date_converter
        self.site_name = settings.site_name
        self.admin_email = settings.admin_email
        self.time_format = settings.time_format

    def _when(self, booking) -> tuple[str, str]:
        """Booking date in the configured calendar and its formatted time"""
        return (
            self.date_converter.format(booking.booking_date),
            booking.booking_time.strftime(self.time_format),
        )

    def send_confirmation(self, booking) -> bool:
        subject, body = confirmation_email(booking, self.site_name, *self._when(booking))
        return self.email.send_email(booking.customer_email, subject, body)

    def send_admin_alert(self, booking) -> bool:
        subject, body = admin_notification_email(booking, self.site_name, *self._when(booking))
        reply_to = f"{booking.customer_name} <{booking.customer_email}>"
        return self.email.send_email(self.admin_email, subject, body, reply_to=reply_to)

    def send_status_update(self, booking) -> bool:
        subject, body = status_update_email(booking, self.site_name, *self._when(booking))
        return self.email.send_email(booking.customer_email, subject, body)

    def send_reminder(self, booking, tier: str) -> bool:
        """
        Send the reminder email for a tier.

        Returns:
            True when the email was accepted; the SMS copy does not affect the result
        """
        date_str, time_str = self._when(booking)
        subject, body = REMINDER_TEMPLATES[tier](booking, self.site_name, date_str, time_str)
        sent = self.email.send_email(booking.customer_email, subject, body)

        if sent and self.sms is not None and self.sms.configured:
            result = self.sms.send_reminder_sms(booking.customer_phone, f"{date_str} {time_str}", tier)
            if result.get("status") != "success":
                logger.warning(f"SMS {tier} reminder for booking {booking.id} failed: {result.get('message')}")

        return sent
