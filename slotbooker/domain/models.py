"""
Domain models for time ranges, work windows and calendar events.
"""

import re
from dataclasses import dataclass
from datetime import time

import pendulum
from pendulum import DateTime

from .exceptions import InvalidDateError, InvalidDurationError, InvalidTimeError

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_clock_time(value: str) -> time:
    """
    Parse a wall-clock string in ``HH:mm`` form.

    Raises:
        InvalidTimeError: If the string is not a valid 24h clock time
    """
    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeError(f"Invalid time '{value}', expected HH:mm")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must not be after end. Zero-length ranges are allowed
    because calendars report them for instantaneous events.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Start time {self.start} must not be after end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another (half-open)."""
        return self.start < other.end and self.end > other.start

    def expand(self, minutes: int) -> "TimeRange":
        """Return a copy widened by ``minutes`` on both sides."""
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WorkWindow(TimeRange):
    """
    The absolute interval during which bookings are allowed on one date.

    Invariant: start must be strictly before end.
    """

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")


@dataclass(frozen=True)
class EventDetails:
    """
    A calendar event to be created for a booking.
    """
    summary: str
    start: DateTime
    end: DateTime
    timezone: str
    description: str = ""


@dataclass
class WorkHours:
    """
    Configuration for the daily work window.

    Resolves calendar dates to absolute work windows in the configured
    timezone, so DST transitions shift the UTC offset rather than the
    wall-clock hours.
    """
    start_time: time
    end_time: time
    timezone: str = "America/Los_Angeles"

    def parse_date(self, date: str) -> DateTime:
        """
        Parse a ``YYYY-MM-DD`` date to midnight in the configured timezone.

        Raises:
            InvalidDateError: If the date cannot be parsed
        """
        if not isinstance(date, str):
            raise InvalidDateError(f"Invalid date '{date}', expected YYYY-MM-DD")
        try:
            return pendulum.from_format(date.strip(), "YYYY-MM-DD", tz=self.timezone)
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date '{date}', expected YYYY-MM-DD") from exc

    def at(self, date: str, clock: time) -> DateTime:
        """Combine a date string and a wall-clock time into an absolute instant."""
        day = self.parse_date(date)
        return pendulum.datetime(
            day.year,
            day.month,
            day.day,
            clock.hour,
            clock.minute,
            tz=self.timezone,
        )

    def resolve(self, date: str) -> WorkWindow:
        """
        Get the work window for a specific date.

        Args:
            date: Calendar date in ``YYYY-MM-DD`` form

        Returns:
            WorkWindow with timezone-aware start and end

        Raises:
            InvalidDateError: If the date cannot be parsed
        """
        return WorkWindow(
            start=self.at(date, self.start_time),
            end=self.at(date, self.end_time),
        )

    def requested_range(self, date: str, clock: str, duration_minutes: int) -> TimeRange:
        """
        Build the interval a booking request asks for.

        Raises:
            InvalidDateError: If the date cannot be parsed
            InvalidTimeError: If the clock time is not HH:mm
            InvalidDurationError: If the interval ends past the last representable date
        """
        start = self.at(date, parse_clock_time(clock))
        try:
            end = start.add(minutes=duration_minutes)
        except (OverflowError, ValueError) as exc:
            raise InvalidDurationError(f"Duration of {duration_minutes} minutes is out of range") from exc
        return TimeRange(start=start, end=end)
