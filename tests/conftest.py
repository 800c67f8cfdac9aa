"""
Shared fixtures for the executive assistant tests.
"""

import asyncio
import pytest
import logging
from unittest.mock import Mock, AsyncMock

from executive_assistant.config import Config
from executive_assistant.models import ActionResult, AgentOutput


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return Mock(spec=logging.Logger)


@pytest.fixture
def config(tmp_path):
    """Default configuration with the log file under a temp directory."""
    config = Config()
    config.logging.file = str(tmp_path / "logs" / "test.log")
    return config


@pytest.fixture
def calendar_service():
    """Calendar backend double."""
    service = Mock()
    service.list_events = AsyncMock(return_value=ActionResult(success=True, data=[], message="Found 0 upcoming events"))
    service.get_events_for_today = AsyncMock(return_value=ActionResult(success=True, data=[], message="Found 0 upcoming events"))
    service.get_events_for_week = AsyncMock(return_value=ActionResult(success=True, data=[], message="Found 0 upcoming events"))
    service.create_event = AsyncMock(return_value=ActionResult(success=True, data={"id": "evt1"}, message='Event "Sync" created successfully'))
    service.update_event = AsyncMock(return_value=ActionResult(success=True, data={"id": "evt1"}, message="Event updated successfully"))
    service.delete_event = AsyncMock(return_value=ActionResult(success=True, message="Event deleted successfully"))
    return service


@pytest.fixture
def gmail_service():
    """Gmail backend double."""
    service = Mock()
    service.list_messages = AsyncMock(return_value=ActionResult(success=True, data=[], message="Found 0 messages"))
    service.send_message = AsyncMock(return_value=ActionResult(success=True, data={"id": "m1"}, message="Email sent successfully to a@b.com"))
    service.draft_reply = AsyncMock(return_value=ActionResult(success=True, data={"id": "d1"}, message="Draft reply created successfully"))
    service.get_unread_count = AsyncMock(return_value=ActionResult(success=True, data={"count": 3}, message="You have 3 unread messages"))
    return service


class FakeAgent:
    """Agent double that returns a canned output and records its inputs."""

    def __init__(self, output=None, error=None, delay=0.0):
        self.output = output if output is not None else AgentOutput(text="Done.")
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, text):
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.output


@pytest.fixture
def fake_agent():
    """Agent double answering with plain text."""
    return FakeAgent()


def message_send(*parts, metadata=None):
    """Build a message/send payload from text parts or raw part dicts."""
    return {
        "jsonrpc": "2.0",
        "id": "req-1",
        "method": "message/send",
        "params": {
            "message": {
                "kind": "message",
                "role": "user",
                "parts": [part if isinstance(part, dict) else {"kind": "text", "text": part} for part in parts],
                "metadata": metadata or {"telex_user_id": "u1", "telex_channel_id": "c1"},
                "messageId": "msg-1",
            },
            "configuration": {"acceptedOutputModes": ["text/plain"], "blocking": True},
        },
    }
