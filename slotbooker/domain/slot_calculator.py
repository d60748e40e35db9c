"""
Core business logic for calculating bookable slots and validating bookings.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from typing import Iterable, List

from .conflicts import find_conflict
from .exceptions import InvalidDurationError, SlotConflictError
from .models import TimeRange, WorkWindow

SLOT_STEP_MINUTES = 15


def ensure_positive_duration(duration_minutes) -> int:
    """
    Validate a service duration.

    Raises:
        InvalidDurationError: If the duration is not a positive integer
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidDurationError(f"Duration must be an integer number of minutes, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidDurationError(f"Duration must be greater than zero, got {duration_minutes}")
    return duration_minutes


class SlotCalculator:
    """
    Calculates bookable start times and re-checks booking requests.

    Algorithm:
    1. Place a cursor at the start of the work window
    2. While the buffered candidate still ends inside the window, test the
       candidate against every busy interval
    3. Keep the cursor if nothing conflicts
    4. Advance by a fixed 15 minute step either way
    """

    def __init__(self, buffer_minutes: int = 0):
        if buffer_minutes < 0:
            raise ValueError(f"Buffer must not be negative, got {buffer_minutes}")
        self.buffer_minutes = buffer_minutes

    def generate_slots(
        self,
        window: WorkWindow,
        duration_minutes: int,
        busy: Iterable[TimeRange],
    ) -> List[str]:
        """
        Find all bookable start times in the work window.

        Args:
            window: Work window for the requested date
            duration_minutes: Requested service duration
            busy: Busy intervals, in any order, possibly overlapping

        Returns:
            Start times formatted as ``HH:mm``, earliest first

        Raises:
            InvalidDurationError: If the duration is not positive
        """
        ensure_positive_duration(duration_minutes)

        if duration_minutes + self.buffer_minutes > window.duration_minutes():
            return []

        busy_ranges = tuple(busy)
        slots: List[str] = []
        cursor = window.start

        # Inclusive boundary: a buffered end landing exactly on window.end is valid
        while cursor.add(minutes=duration_minutes + self.buffer_minutes) <= window.end:
            candidate = TimeRange(start=cursor, end=cursor.add(minutes=duration_minutes))

            if find_conflict(candidate, busy_ranges, self.buffer_minutes) is None:
                slots.append(cursor.format("HH:mm"))

            cursor = cursor.add(minutes=SLOT_STEP_MINUTES)

        return slots

    def validate_booking(
        self,
        window: WorkWindow,
        requested: TimeRange,
        busy: Iterable[TimeRange],
    ) -> None:
        """
        Re-run the conflict test for a single requested interval.

        The request need not be aligned to the slot step. ``window`` is not
        consulted: a request outside the work window is accepted as long as
        it does not collide with a busy interval.

        Raises:
            SlotConflictError: If the request collides with a busy interval
        """
        conflicting = find_conflict(requested, busy, self.buffer_minutes)

        if conflicting is not None:
            raise SlotConflictError(requested=requested, conflicting=conflicting)
