"""
Google Calendar API Service
Mirrors bookings as events in a Google Calendar
"""
import json
import logging
from datetime import datetime, timedelta

from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.exceptions import DispatchFailure
from app.services.calendar_sync import event_description, event_summary

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/calendar']
TOKEN_URI = 'https://oauth2.googleapis.com/token'


class GoogleCalendarService:
    """Service to interact with Google Calendar API"""

    def __init__(self, settings, service=None):
        self.settings = settings
        self.calendar_id = settings.google_calendar_id or 'primary'
        self.timezone = settings.timezone
        self.duration = timedelta(minutes=settings.appointment_duration_minutes)
        self.admin_email = settings.admin_email
        self.service = service or self._init_service()

    def _load_credentials(self):
        """Refresh-token credentials if configured, otherwise a service account"""
        settings = self.settings
        if settings.google_refresh_token and settings.google_client_id and settings.google_client_secret:
            # google-auth exchanges the refresh token on first use
            return Credentials(
                None,
                refresh_token=settings.google_refresh_token,
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                token_uri=TOKEN_URI,
                scopes=SCOPES,
            )

        if not settings.google_calendar_credentials:
            raise ValueError("GOOGLE_CALENDAR_CREDENTIALS not set")

        # Load credentials from file path or JSON string
        creds_path = settings.google_calendar_credentials
        try:
            with open(creds_path, 'r') as f:
                creds_dict = json.load(f)
        except (FileNotFoundError, OSError, json.JSONDecodeError):
            creds_dict = json.loads(creds_path)

        return service_account.Credentials.from_service_account_info(creds_dict, scopes=SCOPES)

    def _init_service(self):
        """Initialize Google Calendar API service"""
        credentials = self._load_credentials()
        return build('calendar', 'v3', credentials=credentials, cache_discovery=False)

    def build_event(self, booking) -> dict:
        start = datetime.combine(booking.booking_date, booking.booking_time)
        end = start + self.duration

        attendees = [{'email': booking.customer_email, 'displayName': booking.customer_name}]
        if self.admin_email:
            attendees.append({'email': self.admin_email})

        return {
            'summary': event_summary(booking),
            'description': event_description(booking, self.timezone),
            'location': booking.target_country or '',
            'start': {'dateTime': start.isoformat(), 'timeZone': self.timezone},
            'end': {'dateTime': end.isoformat(), 'timeZone': self.timezone},
            'attendees': attendees,
            'reminders': {
                'useDefault': False,
                'overrides': [
                    {'method': 'email', 'minutes': 24 * 60},
                    {'method': 'popup', 'minutes': 30},
                ],
            },
            'colorId': '9',  # Blue for consultations
        }

    def upsert_event(self, booking) -> str | None:
        """
        Create the booking's event, or update it when it already has one.

        Returns:
            The Google Calendar event ID

        Raises:
            DispatchFailure: if the API call fails
        """
        body = self.build_event(booking)
        events = self.service.events()
        try:
            if booking.google_event_id:
                event = events.update(
                    calendarId=self.calendar_id,
                    eventId=booking.google_event_id,
                    body=body
                ).execute()
            else:
                event = events.insert(
                    calendarId=self.calendar_id,
                    body=body
                ).execute()
        except HttpError as e:
            raise DispatchFailure(f"Failed to sync event for booking {booking.id}: {e}") from e

        logger.info(f"Google Calendar event {event.get('id')} synced for booking {booking.id}")
        return event.get('id')

    def delete_event(self, remote_id: str) -> None:
        """
        Delete event from Google Calendar. An event that is already gone counts as deleted.

        Raises:
            DispatchFailure: if the API call fails
        """
        try:
            self.service.events().delete(
                calendarId=self.calendar_id,
                eventId=remote_id
            ).execute()
        except HttpError as e:
            if e.resp.status in (404, 410):
                logger.info(f"Google Calendar event {remote_id} already deleted")
                return
            raise DispatchFailure(f"Failed to delete event {remote_id}: {e}") from e

        logger.info(f"Google Calendar event {remote_id} deleted")
