import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.container import Services
from app.schemas import (
    AvailabilityResponse,
    BookedTimesResponse,
    BookingCreate,
    BookingListResponse,
    BookingOut,
    BookingResponse,
    BookingUpdate,
    MessageResponse,
)
from app.services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_booking_service(services: Services = Depends(get_services)) -> BookingService:
    return services.booking_service


def require_admin(
    services: Services = Depends(get_services),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    """Check the bearer token against ADMIN_API_TOKEN; no token configured means no admin access"""
    token = services.settings.admin_api_token
    if not token or credentials is None or not secrets.compare_digest(credentials.credentials, token):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    """Health check endpoint"""
    return {
        "status": "ok",
        "app": services.settings.app_name,
        "scheduler_running": services.reminder_scheduler.scheduler.running,
    }


@router.post("/bookings", response_model=BookingResponse, status_code=201)
def create_booking(payload: BookingCreate, booking_service: BookingService = Depends(get_booking_service)):
    """
    Public booking form submission.

    - Validate fields and convert the date from the configured calendar
    - Reject the request if the slot is taken
    - Sync the calendar and send the confirmation and admin emails
    """
    booking = booking_service.create_booking(payload.model_dump(exclude_none=True))
    return BookingResponse(
        message="Your consultation has been booked successfully",
        booking=BookingOut.model_validate(booking),
    )


@router.get("/bookings", response_model=BookingListResponse, dependencies=[Depends(require_admin)])
def list_bookings(
    status: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    customer_email: Optional[str] = None,
    booking_service: BookingService = Depends(get_booking_service),
):
    """List bookings, newest first"""
    bookings = booking_service.list_bookings(
        status=status,
        date_from=date_from,
        date_to=date_to,
        customer_email=customer_email,
    )
    return BookingListResponse(
        bookings=[BookingOut.model_validate(booking) for booking in bookings],
        total=len(bookings),
    )


@router.get("/bookings/{booking_id}", response_model=BookingOut, dependencies=[Depends(require_admin)])
def get_booking(booking_id: int, booking_service: BookingService = Depends(get_booking_service)):
    return BookingOut.model_validate(booking_service.get_booking(booking_id))


@router.put("/bookings/{booking_id}", response_model=BookingResponse, dependencies=[Depends(require_admin)])
def update_booking(
    booking_id: int,
    payload: BookingUpdate,
    booking_service: BookingService = Depends(get_booking_service),
):
    booking = booking_service.update_booking(booking_id, payload.model_dump(exclude_unset=True))
    return BookingResponse(message="Booking updated", booking=BookingOut.model_validate(booking))


@router.delete("/bookings/{booking_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_booking(booking_id: int, booking_service: BookingService = Depends(get_booking_service)):
    booking_service.delete_booking(booking_id)
    return MessageResponse(message=f"Booking {booking_id} deleted")


@router.get("/bookings/{booking_id}/ical", dependencies=[Depends(require_admin)])
def download_ical(booking_id: int, services: Services = Depends(get_services)):
    """Download the booking as an .ics file"""
    booking = services.booking_service.get_booking(booking_id)
    return Response(
        content=services.ical.render(booking),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="booking-{booking_id}.ics"'},
    )


@router.get("/check-availability", response_model=AvailabilityResponse)
def check_availability(date: str, time: str, booking_service: BookingService = Depends(get_booking_service)):
    """Check whether a slot is free; the date is in the configured calendar"""
    available = booking_service.check_availability(date, time)
    return AvailabilityResponse(date=date, time=time, available=available)


@router.get("/booked-times", response_model=BookedTimesResponse)
def booked_times(date: str, booking_service: BookingService = Depends(get_booking_service)):
    """Times already taken on a date, for greying out slots in the booking form"""
    return BookedTimesResponse(date=date, booked_times=booking_service.get_booked_times(date))


@router.get("/calendar-config")
def calendar_config(services: Services = Depends(get_services)):
    """Datepicker configuration for the booking form"""
    return services.date_converter.datepicker_config()
