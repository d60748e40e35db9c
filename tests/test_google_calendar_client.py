"""
Tests for the Google Calendar gateway, using a mocked discovery resource.
"""

import asyncio
from unittest.mock import MagicMock

import httplib2
import pendulum
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from slotbooker.adapters.google_calendar_client import GoogleCalendarClient
from slotbooker.domain.exceptions import AuthenticationError, GatewayError
from slotbooker.domain.models import EventDetails

TZ = "America/Los_Angeles"


class _Response(dict):
    """Stand-in for an httplib2 response: a header dict with status and reason."""

    status = 503
    reason = "Service Unavailable"


def _client_with_freebusy(response) -> GoogleCalendarClient:
    service = MagicMock()
    service.freebusy.return_value.query.return_value.execute.return_value = response
    return GoogleCalendarClient(service=service, timezone=TZ)


def _window():
    return (
        pendulum.parse("2024-06-10 08:30", tz=TZ),
        pendulum.parse("2024-06-10 17:30", tz=TZ),
    )


class TestQueryFreeBusy:
    """Tests for GoogleCalendarClient.query_free_busy."""

    def test_parses_busy_intervals_into_local_time(self):
        client = _client_with_freebusy(
            {
                "calendars": {
                    "primary": {
                        "busy": [
                            {"start": "2024-06-10T16:30:00Z", "end": "2024-06-10T17:00:00Z"},
                            {"start": "2024-06-10T13:00:00-07:00", "end": "2024-06-10T14:00:00-07:00"},
                        ]
                    }
                }
            }
        )

        busy = asyncio.run(client.query_free_busy("primary", *_window()))

        assert len(busy) == 2
        assert busy[0].start.format("HH:mm") == "09:30"
        assert busy[0].end.format("HH:mm") == "10:00"
        assert busy[0].start.timezone_name == TZ
        assert busy[1].start == pendulum.parse("2024-06-10 13:00", tz=TZ)

    def test_sends_window_and_calendar(self):
        client = _client_with_freebusy({"calendars": {"team@example.com": {"busy": []}}})
        time_min, time_max = _window()

        asyncio.run(client.query_free_busy("team@example.com", time_min, time_max))

        body = client._service.freebusy.return_value.query.call_args.kwargs["body"]
        assert body["items"] == [{"id": "team@example.com"}]
        assert body["timeZone"] == TZ
        assert pendulum.parse(body["timeMin"]) == time_min
        assert pendulum.parse(body["timeMax"]) == time_max

    def test_calendar_errors(self):
        client = _client_with_freebusy(
            {"calendars": {"primary": {"busy": [], "errors": [{"domain": "global", "reason": "notFound"}]}}}
        )

        with pytest.raises(GatewayError, match="notFound"):
            asyncio.run(client.query_free_busy("primary", *_window()))

    def test_calendar_missing_from_response(self):
        client = _client_with_freebusy({"calendars": {}})

        with pytest.raises(GatewayError, match="missing"):
            asyncio.run(client.query_free_busy("primary", *_window()))

    def test_malformed_busy_interval(self):
        client = _client_with_freebusy({"calendars": {"primary": {"busy": [{"start": "2024-06-10T16:30:00Z"}]}}})

        with pytest.raises(GatewayError, match="Malformed"):
            asyncio.run(client.query_free_busy("primary", *_window()))

    def test_http_error(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.side_effect = HttpError(_Response(), b"{}")
        client = GoogleCalendarClient(service=service, timezone=TZ)

        with pytest.raises(GatewayError, match="HTTP 503"):
            asyncio.run(client.query_free_busy("primary", *_window()))

    def test_transport_error(self):
        """httplib2 failures are not OSErrors but are still gateway errors."""
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.side_effect = httplib2.ServerNotFoundError(
            "Unable to find the server at www.googleapis.com"
        )
        client = GoogleCalendarClient(service=service, timezone=TZ)

        with pytest.raises(GatewayError, match="freebusy.query failed"):
            asyncio.run(client.query_free_busy("primary", *_window()))

    def test_refresh_error(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.side_effect = RefreshError("invalid_grant")
        client = GoogleCalendarClient(service=service, timezone=TZ)

        with pytest.raises(AuthenticationError):
            asyncio.run(client.query_free_busy("primary", *_window()))


class TestInsertEvent:
    """Tests for GoogleCalendarClient.insert_event."""

    def _event(self, description: str = "Name: Ada") -> EventDetails:
        return EventDetails(
            summary="Appointment: Ada",
            start=pendulum.parse("2024-06-10 09:00", tz=TZ),
            end=pendulum.parse("2024-06-10 10:00", tz=TZ),
            timezone=TZ,
            description=description,
        )

    def test_creates_event(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {"id": "abc123"}
        client = GoogleCalendarClient(service=service, timezone=TZ)

        event_id = asyncio.run(client.insert_event("primary", self._event()))

        assert event_id == "abc123"
        kwargs = service.events.return_value.insert.call_args.kwargs
        assert kwargs["calendarId"] == "primary"
        assert kwargs["body"]["summary"] == "Appointment: Ada"
        assert kwargs["body"]["description"] == "Name: Ada"
        assert kwargs["body"]["start"]["timeZone"] == TZ
        assert pendulum.parse(kwargs["body"]["start"]["dateTime"]) == pendulum.parse("2024-06-10 09:00", tz=TZ)

    def test_omits_empty_description(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {"id": "abc123"}
        client = GoogleCalendarClient(service=service, timezone=TZ)

        asyncio.run(client.insert_event("primary", self._event(description="")))

        assert "description" not in service.events.return_value.insert.call_args.kwargs["body"]

    def test_missing_event_id(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {}
        client = GoogleCalendarClient(service=service, timezone=TZ)

        with pytest.raises(GatewayError, match="event id"):
            asyncio.run(client.insert_event("primary", self._event()))
