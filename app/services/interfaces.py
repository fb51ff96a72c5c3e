"""
Collaborator contracts used by the booking core
"""
from datetime import datetime
from typing import Protocol

from app.models import Booking


class NotificationDispatcher(Protocol):
    def send_reminder(self, booking: Booking, tier: str) -> bool: ...

    def send_confirmation(self, booking: Booking) -> bool: ...

    def send_admin_alert(self, booking: Booking) -> bool: ...

    def send_status_update(self, booking: Booking) -> bool: ...


class CalendarSyncClient(Protocol):
    def upsert_event(self, booking: Booking) -> str | None:
        """Create or update the remote event, returning its id"""
        ...

    def delete_event(self, remote_id: str) -> None:
        """Remove the remote event; raises DispatchFailure on failure"""
        ...


class Clock(Protocol):
    def now(self) -> datetime: ...
