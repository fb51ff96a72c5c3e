"""
Request and response models for the booking API
"""
from datetime import date, datetime, time
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class BookingCreate(BaseModel):
    """Booking form submission; dates are in the configured calendar"""

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    booking_date: Optional[str] = None
    booking_time: Optional[str] = None
    business_status: Optional[str] = None
    target_country: Optional[str] = None
    team_size: Optional[int] = None
    services: Optional[Union[List[str], str]] = None
    team_description: Optional[str] = None
    idea_description: Optional[str] = None
    service_description: Optional[str] = None
    notes: Optional[str] = None


class BookingUpdate(BookingCreate):
    """Partial update; only fields that are sent are changed"""

    status: Optional[str] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    booking_date: date
    booking_time: time
    business_status: Optional[str] = None
    target_country: Optional[str] = None
    team_size: Optional[int] = None
    services: Optional[str] = None
    team_description: Optional[str] = None
    idea_description: Optional[str] = None
    service_description: Optional[str] = None
    notes: Optional[str] = None
    status: str
    reminder_sent_24h: bool = False
    reminder_sent_30min: bool = False
    google_event_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingOut


class BookingListResponse(BaseModel):
    bookings: List[BookingOut]
    total: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class AvailabilityResponse(BaseModel):
    date: str
    time: str
    available: bool


class BookedTimesResponse(BaseModel):
    date: str
    booked_times: List[str]
