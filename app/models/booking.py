from sqlalchemy import Column, Integer, String, Date, Time, DateTime, Text, Boolean, Index, func
from app.database import Base

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
ACTIVE_STATUSES = ("pending", "confirmed")


def slot_latch(status: str) -> bool | None:
    """Value of `active_slot` for a status: True holds the slot, NULL releases it"""
    return None if status == "cancelled" else True


class Booking(Base):
    """Store consultation bookings"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50), nullable=False)

    # Slot, always stored as a Gregorian date
    booking_date = Column(Date, nullable=False)
    booking_time = Column(Time, nullable=False)

    # Business details
    business_status = Column(String(255), nullable=True)
    target_country = Column(String(255), nullable=True)
    team_size = Column(Integer, nullable=True)
    services = Column(Text, nullable=True)
    team_description = Column(Text, nullable=True)
    idea_description = Column(Text, nullable=True)
    service_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    google_event_id = Column(String(255), nullable=True)  # Remote calendar event handle
    reminder_sent_24h = Column(Boolean, nullable=False, default=False)
    reminder_sent_30min = Column(Boolean, nullable=False, default=False)
    # Derived from status; NULLs never collide in the unique slot index
    active_slot = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_bookings_slot", "booking_date", "booking_time"),
        # One active booking per slot; cancelled rows are free to overlap
        Index("uq_bookings_active_slot", "booking_date", "booking_time", "active_slot", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, date={self.booking_date}, time={self.booking_time}, status={self.status})>"
