"""
Booking error taxonomy
Each error carries the HTTP status and error code the API reports
"""


class BookingError(Exception):
    """Base class for booking errors"""

    status_code = 500
    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Missing or malformed input field"""

    status_code = 400
    code = "invalid_data"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class DateConversionError(ValidationError):
    """Date string that does not parse or does not exist in its calendar"""

    def __init__(self, message: str, field: str | None = "booking_date"):
        super().__init__(message, field)


class SlotUnavailable(BookingError):
    status_code = 400
    code = "time_slot_unavailable"

    def __init__(self, message: str = "This time slot is not available"):
        super().__init__(message)


class NotFound(BookingError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)


class StorageError(BookingError):
    """Persistence failure; the message is never shown to API callers"""

    status_code = 500
    code = "storage_error"


class DispatchFailure(BookingError):
    """Notification or calendar sync failure"""

    status_code = 502
    code = "dispatch_failed"
