"""
Application services for listing bookable slots and creating bookings.

The service coordinates fetching busy intervals via a calendar client adapter
and delegates slot generation and conflict checks to the domain-level
``SlotCalculator``. This keeps the HTTP and CLI layers thin and allows the
calendar dependency to be replaced via a simple protocol.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from pendulum import DateTime

from ..config import AppConfig
from ..domain.exceptions import InvalidDurationError, SlotConflictError, ValidationError
from ..domain.models import EventDetails, TimeRange, WorkHours, WorkWindow
from ..domain.slot_calculator import SlotCalculator, ensure_positive_duration

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar gateway behaviour needed by the service."""

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
    ) -> List[TimeRange]:
        """Return busy intervals for the calendar inside the window."""

    async def insert_event(self, calendar_id: str, event: EventDetails) -> str:
        """Create the event and return its id."""


@dataclass(frozen=True)
class BookingRequest:
    """A booking as submitted by a client."""
    date: str
    time: str
    duration: Any
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


def parse_duration(value: Any) -> int:
    """
    Convert a duration given as int or decimal string to minutes.

    Raises:
        InvalidDurationError: If the value is not a positive whole number
    """
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise InvalidDurationError(f"Duration must be a positive whole number of minutes, got '{value}'")
        value = int(value)
    return ensure_positive_duration(value)


class BookingService:
    """
    Orchestrates busy-interval retrieval, slot generation and booking.

    Within one process the check-then-insert sequence of ``book`` is
    serialised per calendar. Separate processes sharing a calendar can still
    race between the availability check and the event insert.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        work_hours: WorkHours,
        slot_calculator: SlotCalculator,
        calendar_id: str = "primary",
    ) -> None:
        self._calendar_client = calendar_client
        self._work_hours = work_hours
        self._slot_calculator = slot_calculator
        self.calendar_id = calendar_id
        self._booking_locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, config: AppConfig, calendar_client: CalendarClientProtocol) -> "BookingService":
        """Wire a service from the application config."""
        return cls(
            calendar_client=calendar_client,
            work_hours=config.get_work_hours(),
            slot_calculator=SlotCalculator(buffer_minutes=config.buffer_minutes),
            calendar_id=config.calendar_id,
        )

    @property
    def buffer_minutes(self) -> int:
        return self._slot_calculator.buffer_minutes

    async def find_slots(self, *, date: Optional[str], duration: Any) -> List[str]:
        """
        Resolve the work window, fetch busy data and compute bookable slots.

        Raises:
            ValidationError: If date or duration is missing or malformed
            GatewayError: If busy intervals cannot be fetched
        """
        if not date or duration in (None, ""):
            raise ValidationError("date and duration are required")

        duration_minutes = parse_duration(duration)
        window = self._work_hours.resolve(date)

        # Busy time just outside the window still matters because of the buffer
        search_range = window.expand(self.buffer_minutes)
        busy = await self.fetch_busy_times(time_min=search_range.start, time_max=search_range.end)

        slots = self._slot_calculator.generate_slots(window, duration_minutes, busy)
        logger.info("%d slot(s) of %d min on %s", len(slots), duration_minutes, date)
        return slots

    async def fetch_busy_times(self, *, time_min: DateTime, time_max: DateTime) -> List[TimeRange]:
        """Fetch busy intervals of the configured calendar."""
        return await self._calendar_client.query_free_busy(
            calendar_id=self.calendar_id,
            time_min=time_min,
            time_max=time_max,
        )

    async def book(self, request: BookingRequest) -> str:
        """
        Validate a booking against fresh busy data and create the event.

        Returns:
            The created event id

        Raises:
            ValidationError: If required fields are missing or malformed
            SlotConflictError: If the requested interval is no longer free
            GatewayError: If the calendar cannot be queried or written
        """
        missing = [
            field
            for field in ("date", "time", "duration", "name")
            if getattr(request, field) in (None, "")
        ]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        duration_minutes = parse_duration(request.duration)
        window = self._work_hours.resolve(request.date)
        requested = self._work_hours.requested_range(request.date, request.time, duration_minutes)

        lock = self._booking_locks.setdefault(self.calendar_id, asyncio.Lock())
        async with lock:
            busy = await self._fetch_busy_for_booking(window, requested)

            try:
                self._slot_calculator.validate_booking(window, requested, busy)
            except SlotConflictError as exc:
                logger.info("Booking for %s rejected, %s conflicts with %s", request.name, requested, exc.conflicting)
                raise

            event = self.build_event(request, requested, self._work_hours.timezone)
            event_id = await self._calendar_client.insert_event(self.calendar_id, event)

        logger.info("Booked %s for %s (event %s)", requested, request.name, event_id)
        return event_id

    async def _fetch_busy_for_booking(self, window: WorkWindow, requested: TimeRange) -> List[TimeRange]:
        # Cover both the day's window and the buffered request, which may lie outside it
        try:
            buffered = requested.expand(self.buffer_minutes)
        except (OverflowError, ValueError) as exc:
            raise InvalidDurationError(f"Requested interval {requested} is out of range") from exc
        return await self.fetch_busy_times(
            time_min=min(window.start, buffered.start),
            time_max=max(window.end, buffered.end),
        )

    @staticmethod
    def build_event(request: BookingRequest, requested: TimeRange, timezone: str) -> EventDetails:
        """Build the calendar event for a validated booking."""
        lines = [f"Name: {request.name}"]
        if request.email:
            lines.append(f"Email: {request.email}")
        if request.phone:
            lines.append(f"Phone: {request.phone}")
        lines.append(f"Duration: {requested.duration_minutes()} min")
        if request.notes:
            lines.append("")
            lines.append(request.notes)

        return EventDetails(
            summary=f"Appointment: {request.name}",
            start=requested.start,
            end=requested.end,
            timezone=timezone,
            description="\n".join(lines),
        )
