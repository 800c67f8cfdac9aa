"""
Google Calendar and Gmail backends.

The Google client library is synchronous, so every API call runs in a worker
thread. Each public coroutine returns an ActionResult and never raises.
"""

import asyncio
import base64
import logging
import threading
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage
from typing import Any, Callable, Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import GoogleConfig
from .exceptions import ToolExecutionError
from .models import ActionResult, CalendarEvent, GmailMessage


def _error_text(error: Exception) -> str:
    if isinstance(error, HttpError):
        reason = getattr(error, "reason", None) or error._get_reason()
        return f"Google API error {error.resp.status}: {reason}"
    return getattr(error, "message", None) or str(error)


class GoogleService:
    """Shared credential handling for the Google API backends."""

    api_name = ""
    api_version = ""

    def __init__(self, config: GoogleConfig, logger: logging.Logger, service: Any = None):
        """Initialize with OAuth settings; `service` injects a prebuilt API resource."""
        self.config = config
        self.logger = logger
        self._service = service
        self._lock = threading.Lock()

    def _build_credentials(self) -> Credentials:
        if not self.config.has_credentials():
            raise ToolExecutionError(
                f"Google credentials are not configured for {self.api_name}",
                self.api_name,
                "MISSING_CREDENTIALS"
            )
        return Credentials(
            token=None,
            refresh_token=self.config.refresh_token,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            token_uri=self.config.token_uri,
            scopes=self.config.scopes,
        )

    @property
    def service(self) -> Any:
        """Lazily built API resource."""
        if self._service is None:
            self._service = build(
                self.api_name,
                self.api_version,
                credentials=self._build_credentials(),
                cache_discovery=False,
            )
        return self._service

    async def _run(self, func: Callable[[], Any]) -> Any:
        # The client's httplib2 transport is not thread-safe, so calls on one resource are serialised
        def locked() -> Any:
            with self._lock:
                return func()

        return await asyncio.to_thread(locked)

    def _failure(self, error: Exception, operation: str, message: str) -> ActionResult:
        error_text = _error_text(error)
        self.logger.error(f"Error {operation}: {error_text}")
        return ActionResult(success=False, error=error_text, message=message)


class GoogleCalendarService(GoogleService):
    """Google Calendar v3 backend."""

    api_name = "calendar"
    api_version = "v3"

    async def list_events(self, max_results: int = 10, time_min: Optional[str] = None,
                          time_max: Optional[str] = None) -> ActionResult:
        """List upcoming single events ordered by start time."""
        try:
            query: Dict[str, Any] = {
                "calendarId": self.config.calendar_id,
                "timeMin": time_min or datetime.now(timezone.utc).isoformat(),
                "maxResults": max_results,
                "singleEvents": True,
                "orderBy": "startTime",
            }
            if time_max:
                query["timeMax"] = time_max

            response = await self._run(lambda: self.service.events().list(**query).execute())
            events = response.get("items", [])

            self.logger.info(f"Retrieved {len(events)} calendar events")
            return ActionResult(
                success=True,
                data=events,
                message=f"Found {len(events)} upcoming events"
            )
        except Exception as e:
            return self._failure(e, "listing calendar events", "Failed to retrieve calendar events")

    async def get_events_for_today(self) -> ActionResult:
        """Events between local midnight today and local midnight tomorrow."""
        today = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow = today + timedelta(days=1)
        return await self.list_events(50, today.isoformat(), tomorrow.isoformat())

    async def get_events_for_week(self) -> ActionResult:
        """Events in the next seven days."""
        now = datetime.now(timezone.utc)
        next_week = now + timedelta(days=7)
        return await self.list_events(50, now.isoformat(), next_week.isoformat())

    async def create_event(self, event: CalendarEvent) -> ActionResult:
        """Insert an event."""
        try:
            body = event.to_api()
            response = await self._run(
                lambda: self.service.events().insert(calendarId=self.config.calendar_id, body=body).execute()
            )

            self.logger.info(f"Created calendar event: {event.summary}")
            return ActionResult(
                success=True,
                data=response,
                message=f'Event "{event.summary}" created successfully'
            )
        except Exception as e:
            return self._failure(e, "creating calendar event", "Failed to create calendar event")

    async def update_event(self, event_id: str, updates: Dict[str, Any]) -> ActionResult:
        """Patch an event with partial fields."""
        try:
            response = await self._run(
                lambda: self.service.events().patch(
                    calendarId=self.config.calendar_id, eventId=event_id, body=updates
                ).execute()
            )

            self.logger.info(f"Updated calendar event: {event_id}")
            return ActionResult(success=True, data=response, message="Event updated successfully")
        except Exception as e:
            return self._failure(e, "updating calendar event", "Failed to update calendar event")

    async def delete_event(self, event_id: str) -> ActionResult:
        """Delete an event."""
        try:
            await self._run(
                lambda: self.service.events().delete(calendarId=self.config.calendar_id, eventId=event_id).execute()
            )

            self.logger.info(f"Deleted calendar event: {event_id}")
            return ActionResult(success=True, message="Event deleted successfully")
        except Exception as e:
            return self._failure(e, "deleting calendar event", "Failed to delete calendar event")


class GmailService(GoogleService):
    """Gmail v1 backend."""

    api_name = "gmail"
    api_version = "v1"

    @staticmethod
    def _encode(message: GmailMessage, references: Optional[str] = None) -> str:
        email = EmailMessage()
        email["To"] = message.to
        email["Subject"] = message.subject
        if message.sender:
            email["From"] = message.sender
        if message.in_reply_to:
            email["In-Reply-To"] = message.in_reply_to
            email["References"] = references or message.in_reply_to
        email.set_content(message.body)
        return base64.urlsafe_b64encode(email.as_bytes()).decode("utf-8")

    @staticmethod
    def _header(message: Dict[str, Any], name: str) -> str:
        headers = message.get("payload", {}).get("headers", [])
        for header in headers:
            if header.get("name", "").lower() == name.lower():
                return header.get("value", "")
        return ""

    def _parse_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": message.get("id"),
            "threadId": message.get("threadId"),
            "from": self._header(message, "From"),
            "to": self._header(message, "To"),
            "subject": self._header(message, "Subject"),
            "date": self._header(message, "Date"),
            "snippet": message.get("snippet", ""),
        }

    async def list_messages(self, max_results: int = 10, query: Optional[str] = None) -> ActionResult:
        """List messages matching a Gmail search query, unread by default."""
        def fetch() -> List[Dict[str, Any]]:
            messages = self.service.users().messages()
            listing = messages.list(userId="me", maxResults=max_results, q=query or "is:unread").execute()
            return [
                self._parse_message(messages.get(userId="me", id=item["id"], format="full").execute())
                for item in listing.get("messages", [])
            ]

        try:
            detailed = await self._run(fetch)

            self.logger.info(f"Retrieved {len(detailed)} Gmail messages")
            return ActionResult(success=True, data=detailed, message=f"Found {len(detailed)} messages")
        except Exception as e:
            return self._failure(e, "listing Gmail messages", "Failed to retrieve Gmail messages")

    async def send_message(self, message: GmailMessage) -> ActionResult:
        """Send a plain-text message."""
        try:
            raw = self._encode(message)
            body: Dict[str, Any] = {"raw": raw}
            if message.thread_id:
                body["threadId"] = message.thread_id
            response = await self._run(
                lambda: self.service.users().messages().send(userId="me", body=body).execute()
            )

            self.logger.info(f"Sent Gmail message: {message.subject}")
            return ActionResult(success=True, data=response, message=f"Email sent successfully to {message.to}")
        except Exception as e:
            return self._failure(e, "sending Gmail message", "Failed to send email")

    async def draft_reply(self, message_id: str, reply_content: str) -> ActionResult:
        """Draft a reply to a received message in its thread."""
        def create() -> Dict[str, Any]:
            messages = self.service.users().messages()
            original = messages.get(
                userId="me",
                id=message_id,
                format="metadata",
                metadataHeaders=["From", "Subject", "Message-ID", "References"],
            ).execute()

            subject = self._header(original, "Subject")
            rfc_message_id = self._header(original, "Message-ID") or message_id
            references = " ".join(filter(None, [self._header(original, "References"), rfc_message_id]))
            reply = GmailMessage(
                to=self._header(original, "From"),
                subject=subject if subject.startswith("Re:") else f"Re: {subject}",
                body=reply_content,
                in_reply_to=rfc_message_id,
            )

            return self.service.users().drafts().create(
                userId="me",
                body={"message": {"raw": self._encode(reply, references), "threadId": original.get("threadId")}},
            ).execute()

        try:
            response = await self._run(create)

            self.logger.info(f"Created draft reply for message: {message_id}")
            return ActionResult(success=True, data=response, message="Draft reply created successfully")
        except Exception as e:
            return self._failure(e, "creating draft reply", "Failed to create draft reply")

    async def get_unread_count(self) -> ActionResult:
        """Estimated number of unread messages."""
        try:
            response = await self._run(
                lambda: self.service.users().messages().list(userId="me", q="is:unread", maxResults=1).execute()
            )
            count = response.get("resultSizeEstimate", 0)

            return ActionResult(success=True, data={"count": count}, message=f"You have {count} unread messages")
        except Exception as e:
            return self._failure(e, "getting unread count", "Failed to get unread count")
