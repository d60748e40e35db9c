"""
HTTP routes: health check, slot listing and booking.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..services.booking_service import BookingRequest, BookingService

router = APIRouter()


class HealthResponse(BaseModel):
    ok: bool = True


class SlotsResponse(BaseModel):
    slots: List[str]


class BookingBody(BaseModel):
    """
    Booking payload. Required fields are checked by the service so that
    missing values surface as a 400 with a readable message.
    """
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[Union[int, str]] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    success: bool = True
    eventId: str


def _service(request: Request) -> BookingService:
    return request.app.state.booking_service


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(ok=True)


@router.get("/api/slots", response_model=SlotsResponse)
async def list_slots(
    request: Request,
    date: Optional[str] = None,
    duration: Optional[str] = None,
) -> SlotsResponse:
    """List bookable start times for a date and service duration."""
    slots = await _service(request).find_slots(date=date, duration=duration)
    return SlotsResponse(slots=slots)


@router.post("/api/book", response_model=BookingResponse)
async def book(request: Request, body: BookingBody) -> BookingResponse:
    """Re-check availability and create the calendar event."""
    event_id = await _service(request).book(
        BookingRequest(
            date=body.date,
            time=body.time,
            duration=body.duration,
            name=body.name,
            email=body.email,
            phone=body.phone,
            notes=body.notes,
        )
    )
    return BookingResponse(success=True, eventId=event_id)
