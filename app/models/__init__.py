from app.models.booking import Booking, BOOKING_STATUSES, ACTIVE_STATUSES, slot_latch

__all__ = ["Booking", "BOOKING_STATUSES", "ACTIVE_STATUSES", "slot_latch"]
