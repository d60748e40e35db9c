"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingRequest, BookingService, CalendarClientProtocol, parse_duration

__all__ = ["BookingRequest", "BookingService", "CalendarClientProtocol", "parse_duration"]
