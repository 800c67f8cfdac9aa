"""
Test the Google Calendar and Gmail backends against mocked API resources.
"""

import asyncio
import base64
import pytest
import threading
import time
from email import message_from_bytes
from unittest.mock import Mock, patch

from googleapiclient.errors import HttpError

from executive_assistant.config import GoogleConfig
from executive_assistant.google_services import GmailService, GoogleCalendarService
from executive_assistant.models import CalendarEvent, GmailMessage


@pytest.fixture
def google_config():
    return GoogleConfig(client_id="id", client_secret="secret", refresh_token="refresh", calendar_id="team")


@pytest.fixture
def api():
    """Mocked discovery resource."""
    return Mock()


def decode_raw(raw):
    return message_from_bytes(base64.urlsafe_b64decode(raw.encode("utf-8")))


class TestCredentials:
    """Test lazy client construction."""

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_per_call(self, mock_logger):
        """Test calls fail with a readable error when credentials are absent."""
        service = GoogleCalendarService(GoogleConfig(), mock_logger)

        result = await service.list_events()

        assert result.success is False
        assert result.error == "Google credentials are not configured for calendar"
        assert result.message == "Failed to retrieve calendar events"

    def test_service_is_built_once(self, google_config, mock_logger):
        """Test the discovery client is built lazily and cached."""
        with patch("executive_assistant.google_services.build") as build:
            service = GmailService(google_config, mock_logger)

            first = service.service
            second = service.service

        assert first is second
        build.assert_called_once()
        args, kwargs = build.call_args
        assert args == ("gmail", "v1")
        assert kwargs["cache_discovery"] is False
        assert kwargs["credentials"].refresh_token == "refresh"

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_transport_serially(self, google_config, mock_logger, api):
        """Test overlapping requests never use the client from two threads at once."""
        guard = threading.Lock()
        state = {"active": 0, "peak": 0}

        def execute():
            with guard:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.05)
            with guard:
                state["active"] -= 1
            return {"items": [{"id": "e1"}]}

        api.events.return_value.list.return_value.execute.side_effect = execute
        service = GoogleCalendarService(google_config, mock_logger, api)

        first, second = await asyncio.gather(service.list_events(), service.list_events())

        assert first.success is True
        assert second.success is True
        assert state["peak"] == 1


class TestGoogleCalendarService:
    """Test calendar operations."""

    @pytest.mark.asyncio
    async def test_list_events(self, google_config, mock_logger, api):
        """Test listing upcoming events."""
        api.events.return_value.list.return_value.execute.return_value = {"items": [{"id": "e1"}, {"id": "e2"}]}
        service = GoogleCalendarService(google_config, mock_logger, api)

        result = await service.list_events(5, "2025-01-01T00:00:00Z")

        assert result.success is True
        assert result.message == "Found 2 upcoming events"
        kwargs = api.events.return_value.list.call_args.kwargs
        assert kwargs["calendarId"] == "team"
        assert kwargs["maxResults"] == 5
        assert kwargs["singleEvents"] is True
        assert kwargs["orderBy"] == "startTime"
        assert "timeMax" not in kwargs

    @pytest.mark.asyncio
    async def test_get_events_for_today(self, google_config, mock_logger, api):
        """Test today's range spans one day."""
        api.events.return_value.list.return_value.execute.return_value = {"items": []}
        service = GoogleCalendarService(google_config, mock_logger, api)

        result = await service.get_events_for_today()

        assert result.success is True
        kwargs = api.events.return_value.list.call_args.kwargs
        assert kwargs["maxResults"] == 50
        assert "T00:00:00" in kwargs["timeMin"]
        assert "T00:00:00" in kwargs["timeMax"]

    @pytest.mark.asyncio
    async def test_create_event(self, google_config, mock_logger, api):
        """Test inserting an event."""
        api.events.return_value.insert.return_value.execute.return_value = {"id": "new"}
        service = GoogleCalendarService(google_config, mock_logger, api)
        event = CalendarEvent.model_validate({
            "summary": "Board meeting",
            "start": {"dateTime": "2025-01-01T10:00:00Z"},
            "end": {"dateTime": "2025-01-01T11:00:00Z"},
            "attendees": [{"email": "ceo@example.com"}],
        })

        result = await service.create_event(event)

        assert result.success is True
        assert result.message == 'Event "Board meeting" created successfully'
        body = api.events.return_value.insert.call_args.kwargs["body"]
        assert body["attendees"] == [{"email": "ceo@example.com"}]
        assert "description" not in body

    @pytest.mark.asyncio
    async def test_api_error(self, google_config, mock_logger, api):
        """Test API errors become failed results."""
        resp = Mock(status=404, reason="Not Found")
        api.events.return_value.delete.return_value.execute.side_effect = HttpError(
            resp, b'{"error": {"message": "Not Found"}}'
        )
        service = GoogleCalendarService(google_config, mock_logger, api)

        result = await service.delete_event("missing")

        assert result.success is False
        assert result.error.startswith("Google API error 404")
        assert result.message == "Failed to delete calendar event"
        assert result.data is None


class TestGmailService:
    """Test Gmail operations."""

    @pytest.mark.asyncio
    async def test_list_messages(self, google_config, mock_logger, api):
        """Test listing fetches and parses each message."""
        messages = api.users.return_value.messages.return_value
        messages.list.return_value.execute.return_value = {"messages": [{"id": "m1"}]}
        messages.get.return_value.execute.return_value = {
            "id": "m1",
            "threadId": "t1",
            "snippet": "Quarterly numbers",
            "payload": {"headers": [
                {"name": "From", "value": "cfo@example.com"},
                {"name": "Subject", "value": "Q3"},
            ]},
        }
        service = GmailService(google_config, mock_logger, api)

        result = await service.list_messages(3)

        assert result.success is True
        assert result.message == "Found 1 messages"
        assert result.data[0]["from"] == "cfo@example.com"
        assert result.data[0]["subject"] == "Q3"
        assert messages.list.call_args.kwargs["q"] == "is:unread"

    @pytest.mark.asyncio
    async def test_send_message(self, google_config, mock_logger, api):
        """Test the message is encoded as raw RFC 2822."""
        send = api.users.return_value.messages.return_value.send
        send.return_value.execute.return_value = {"id": "sent"}
        service = GmailService(google_config, mock_logger, api)

        result = await service.send_message(GmailMessage(to="a@example.com", subject="Hello", body="Hi there"))

        assert result.success is True
        assert result.message == "Email sent successfully to a@example.com"
        email = decode_raw(send.call_args.kwargs["body"]["raw"])
        assert email["To"] == "a@example.com"
        assert email["Subject"] == "Hello"
        assert email.get_payload().strip() == "Hi there"

    @pytest.mark.asyncio
    async def test_draft_reply(self, google_config, mock_logger, api):
        """Test the reply is threaded and addressed to the sender."""
        messages = api.users.return_value.messages.return_value
        messages.get.return_value.execute.return_value = {
            "id": "m1",
            "threadId": "t1",
            "payload": {"headers": [
                {"name": "From", "value": "boss@example.com"},
                {"name": "Subject", "value": "Budget"},
                {"name": "Message-ID", "value": "<abc@mail>"},
            ]},
        }
        drafts = api.users.return_value.drafts.return_value
        drafts.create.return_value.execute.return_value = {"id": "d1"}
        service = GmailService(google_config, mock_logger, api)

        result = await service.draft_reply("m1", "Looks good")

        assert result.success is True
        assert result.message == "Draft reply created successfully"
        body = drafts.create.call_args.kwargs["body"]["message"]
        assert body["threadId"] == "t1"
        email = decode_raw(body["raw"])
        assert email["To"] == "boss@example.com"
        assert email["Subject"] == "Re: Budget"
        assert email["In-Reply-To"] == "<abc@mail>"

    @pytest.mark.asyncio
    async def test_get_unread_count(self, google_config, mock_logger, api):
        """Test the unread estimate."""
        api.users.return_value.messages.return_value.list.return_value.execute.return_value = {"resultSizeEstimate": 4}
        service = GmailService(google_config, mock_logger, api)

        result = await service.get_unread_count()

        assert result.data == {"count": 4}
        assert result.message == "You have 4 unread messages"
