"""
Mock calendar client for running without Google credentials.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.models import EventDetails, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that simulates the Google Calendar gateway.

    Busy intervals come from a JSON list of events
    (``{"calendarId", "start", "end", "summary"}``); events created through
    ``insert_event`` are kept in memory and show up in later queries.
    """

    def __init__(
        self,
        timezone: str = "America/Los_Angeles",
        data_file: Optional[Path] = None,
        events: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Initialize the mock client.

        Args:
            timezone: Timezone naive event times are interpreted in
            data_file: JSON file with seed events, defaults to the bundled sample
            events: Seed events given directly (takes precedence over data_file)
        """
        self.timezone = timezone
        if events is not None:
            self.calendar_events = list(events)
        else:
            self.calendar_events = self._load_calendar_data(data_file or DEFAULT_DATA_FILE)

    def _load_calendar_data(self, data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            logger.warning("Mock calendar data file %s not found, starting empty", data_file)
            return []

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
    ) -> List[TimeRange]:
        """
        Load busy times for one calendar from the mock events.

        Events without a ``calendarId`` belong to every calendar.
        """
        busy: List[TimeRange] = []

        for event in self.calendar_events:
            if event.get("calendarId", calendar_id) != calendar_id:
                continue

            try:
                event_start = pendulum.parse(event["start"], tz=self.timezone)
                event_end = pendulum.parse(event["end"], tz=self.timezone)
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping invalid mock event %r: %s", event, exc)
                continue

            # Check if event overlaps with requested time window
            if event_start < time_max and event_end > time_min:
                busy.append(TimeRange(start=event_start, end=event_end))

        return busy

    async def insert_event(self, calendar_id: str, event: EventDetails) -> str:
        """Record an event in memory and return a generated id."""
        event_id = uuid.uuid4().hex
        self.calendar_events.append(
            {
                "id": event_id,
                "calendarId": calendar_id,
                "summary": event.summary,
                "description": event.description,
                "start": event.start.to_iso8601_string(),
                "end": event.end.to_iso8601_string(),
            }
        )
        logger.info("Mock event %s created on calendar %s", event_id, calendar_id)
        return event_id

    async def test_connection(self, calendar_id: str) -> Dict[str, Any]:
        """Mock connection test."""
        return {
            "id": calendar_id,
            "summary": "Mock Calendar",
            "timeZone": self.timezone,
        }
