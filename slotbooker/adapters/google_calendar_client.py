"""
Google Calendar API client for fetching busy times and creating events.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import httplib2
import pendulum
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiClientError
from googleapiclient.errors import HttpError
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, GatewayError
from ..domain.models import EventDetails, TimeRange

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar v3 operations.

    Uses the ``freebusy.query`` endpoint for busy intervals and
    ``events.insert`` for bookings. The discovery client is blocking, so each
    call runs in a worker thread to keep the event loop free.
    """

    def __init__(self, service: Any, timezone: str = "America/Los_Angeles"):
        """
        Initialize the client.

        Args:
            service: A Calendar v3 discovery resource
            timezone: IANA timezone busy intervals are converted into
        """
        self._service = service
        self.timezone = timezone

    @classmethod
    def from_credentials(cls, credentials: Any, timezone: str) -> "GoogleCalendarClient":
        """Build a client around google-auth credentials."""
        service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return cls(service=service, timezone=timezone)

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
    ) -> List[TimeRange]:
        """
        Get busy intervals for one calendar.

        Args:
            calendar_id: Calendar identifier (``primary`` or a calendar address)
            time_min: Start of the time window
            time_max: End of the time window

        Returns:
            Busy intervals in the configured timezone

        Raises:
            GatewayError: If the API call fails or reports a calendar error
        """
        body = {
            "timeMin": time_min.to_iso8601_string(),
            "timeMax": time_max.to_iso8601_string(),
            "timeZone": self.timezone,
            "items": [{"id": calendar_id}],
        }

        data = await self._execute("freebusy.query", self._query_free_busy_sync, body)
        busy = self._parse_free_busy_response(data, calendar_id)
        logger.debug("Calendar %s has %d busy interval(s) in %s - %s", calendar_id, len(busy), time_min, time_max)
        return busy

    async def insert_event(self, calendar_id: str, event: EventDetails) -> str:
        """
        Create an event and return its identifier.

        Raises:
            GatewayError: If the API call fails or returns no event id
        """
        body: Dict[str, Any] = {
            "summary": event.summary,
            "start": {"dateTime": event.start.to_iso8601_string(), "timeZone": event.timezone},
            "end": {"dateTime": event.end.to_iso8601_string(), "timeZone": event.timezone},
        }
        if event.description:
            body["description"] = event.description

        created = await self._execute("events.insert", self._insert_event_sync, calendar_id, body)

        event_id = created.get("id") if isinstance(created, dict) else None
        if not event_id:
            raise GatewayError("Calendar did not return an event id")

        logger.info("Created event %s on calendar %s", event_id, calendar_id)
        return event_id

    async def test_connection(self, calendar_id: str) -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching calendar metadata.

        Raises:
            GatewayError: If connection test fails
        """
        return await self._execute("calendars.get", self._get_calendar_sync, calendar_id)

    async def _execute(self, action: str, func, *args) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(func, *args)
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            logger.error("Google Calendar %s failed with HTTP %s: %s", action, status, exc)
            raise GatewayError(f"Google Calendar {action} failed (HTTP {status}): {exc}") from exc
        except GoogleAuthError as exc:
            logger.error("Google Calendar %s failed to authenticate: %s", action, exc)
            raise AuthenticationError(f"Google Calendar authentication failed: {exc}") from exc
        except (GoogleApiClientError, httplib2.HttpLib2Error, OSError) as exc:
            logger.error("Google Calendar %s transport error: %s", action, exc)
            raise GatewayError(f"Google Calendar {action} failed: {exc}") from exc

    def _query_free_busy_sync(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._service.freebusy().query(body=body).execute()

    def _insert_event_sync(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._service.events().insert(calendarId=calendar_id, body=body).execute()

    def _get_calendar_sync(self, calendar_id: str) -> Dict[str, Any]:
        return self._service.calendars().get(calendarId=calendar_id).execute()

    def _parse_free_busy_response(
        self,
        response_data: Dict[str, Any],
        calendar_id: str,
    ) -> List[TimeRange]:
        """
        Parse the freebusy.query response into our domain model.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2024-06-10T16:30:00Z", "end": "2024-06-10T17:00:00Z"}
                    ],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendars = response_data.get("calendars") or {}
        calendar = calendars.get(calendar_id)

        if calendar is None:
            raise GatewayError(f"Calendar {calendar_id} missing from free/busy response")

        errors = calendar.get("errors") or []
        if errors:
            reasons = ", ".join(error.get("reason", "unknown") for error in errors)
            raise GatewayError(f"Free/busy lookup failed for {calendar_id}: {reasons}")

        busy_ranges: List[TimeRange] = []

        for item in calendar.get("busy", []):
            try:
                busy_ranges.append(
                    TimeRange(
                        start=self._parse_datetime(item["start"]),
                        end=self._parse_datetime(item["end"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                # Never skip a busy interval
                raise GatewayError(f"Malformed busy interval {item!r}: {exc}") from exc

        return busy_ranges

    def _parse_datetime(self, datetime_str: str) -> DateTime:
        """
        Parse a datetime string to a pendulum DateTime in the configured timezone.
        """
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")
