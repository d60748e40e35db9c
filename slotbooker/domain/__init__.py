"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflicts import conflicts, find_conflict
from .models import EventDetails, TimeRange, WorkHours, WorkWindow
from .slot_calculator import SLOT_STEP_MINUTES, SlotCalculator

__all__ = [
    "EventDetails",
    "SLOT_STEP_MINUTES",
    "SlotCalculator",
    "TimeRange",
    "WorkHours",
    "WorkWindow",
    "conflicts",
    "find_conflict",
]
