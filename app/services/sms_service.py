"""
SMS Service using Twilio
"""
import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

logger = logging.getLogger(__name__)


class TwilioService:
    """Service to send reminder SMS using Twilio"""

    def __init__(self, settings):
        self.account_sid = settings.twilio_account_sid
        self.auth_token = settings.twilio_auth_token
        self.phone_number = settings.twilio_phone_number
        self.client = None
        self._init_client()

    def _init_client(self):
        """Initialize Twilio client"""
        if self.account_sid and self.auth_token and self.phone_number:
            self.client = Client(self.account_sid, self.auth_token)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def send_sms(self, to_number: str, message: str) -> dict:
        """
        Send SMS using Twilio.

        Args:
            to_number: Recipient phone number
            message: Message to send

        Returns:
            dict with SMS status
        """
        if not self.client:
            return {
                "status": "skipped",
                "to": to_number,
                "message": message,
                "note": "Twilio not configured",
            }

        try:
            sms = self.client.messages.create(
                body=message,
                from_=self.phone_number,
                to=to_number
            )
        except TwilioException as e:
            logger.warning(f"Error sending SMS to {to_number}: {e}")
            return {
                "status": "error",
                "message": f"Error sending SMS: {str(e)}"
            }

        return {
            "status": "success",
            "to": to_number,
            "message": message,
            "sid": sms.sid
        }

    def send_reminder_sms(self, user_phone: str, booking_datetime: str, tier: str) -> dict:
        """
        Send reminder SMS ahead of a booking.

        Args:
            user_phone: Customer phone number
            booking_datetime: Booking date and time, already formatted
            tier: '24h' or '30min'

        Returns:
            dict with SMS status
        """
        lead = "in 30 minutes" if tier == "30min" else "tomorrow"
        message = f"Reminder: your appointment is {lead}, {booking_datetime}."
        return self.send_sms(user_phone, message)
