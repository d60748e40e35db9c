"""
Buffer-aware conflict test between a candidate interval and busy intervals.
"""

from typing import Iterable, Optional

from .models import TimeRange


def find_conflict(
    candidate: TimeRange,
    busy: Iterable[TimeRange],
    buffer_minutes: int,
) -> Optional[TimeRange]:
    """
    Return the first busy interval the candidate collides with, or None.

    A candidate conflicts with ``b`` when
    ``candidate.start < b.end + buffer`` and ``candidate.end + buffer > b.start``,
    i.e. the busy interval is widened by the buffer on both sides and tested
    as a half-open overlap.
    """
    candidate_end = candidate.end.add(minutes=buffer_minutes)

    for interval in busy:
        if candidate.start < interval.end.add(minutes=buffer_minutes) and candidate_end > interval.start:
            return interval

    return None


def conflicts(candidate: TimeRange, busy: Iterable[TimeRange], buffer_minutes: int) -> bool:
    """Check whether the candidate collides with any busy interval."""
    return find_conflict(candidate, busy, buffer_minutes) is not None
