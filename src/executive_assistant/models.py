"""
Common data models used across the executive assistant.
Wire-facing models keep the camelCase field names of the chat platform and the Google APIs.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


TaskPriority = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "in-progress", "completed"]


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ActionResult(BaseModel):
    """Result of a tool action."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without unset fields."""
        return self.model_dump(exclude_none=True)


class Task(BaseModel):
    """A task held by the task store."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str = Field(min_length=1)
    description: Optional[str] = ""
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: TaskPriority = "medium"
    status: TaskStatus = "pending"
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)


class EventTime(BaseModel):
    """Start or end of a calendar event."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    date_time: Optional[str] = Field(default=None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class Attendee(BaseModel):
    """Calendar event attendee."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    email: str
    display_name: Optional[str] = Field(default=None, alias="displayName")


class CalendarEvent(BaseModel):
    """Calendar event passed through to Google Calendar."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    summary: str
    description: Optional[str] = None
    start: EventTime
    end: EventTime
    attendees: Optional[List[Attendee]] = None
    reminders: Optional[Dict[str, Any]] = None

    def to_api(self) -> Dict[str, Any]:
        """Request body for the Calendar API."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GmailMessage(BaseModel):
    """Outgoing mail message."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    thread_id: Optional[str] = Field(default=None, alias="threadId")
    to: str
    subject: str
    body: str
    sender: Optional[str] = Field(default=None, alias="from")
    in_reply_to: Optional[str] = Field(default=None, alias="inReplyTo")


class ToolArgs(BaseModel):
    """Arguments of a proposed tool invocation."""
    action: str = ""
    params: Dict[str, Any] = {}

    @field_validator("params", mode="before")
    @classmethod
    def _default_params(cls, value: Any) -> Any:
        return {} if value is None else value


class ToolCall(BaseModel):
    """A tool invocation proposed by the agent."""
    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(default="", alias="toolName")
    args: ToolArgs = Field(default_factory=ToolArgs)
    call_id: Optional[str] = Field(default=None, alias="id")
    # Set when the proposed call could not be parsed; the dispatcher reports it as a failed result
    error: Optional[str] = None

    @field_validator("args", mode="before")
    @classmethod
    def _default_args(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def parse(cls, raw: Any) -> "ToolCall":
        """Validate one raw call, turning a malformed call into one that carries its error."""
        if isinstance(raw, ToolCall):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ())) or "call"
            name = raw.get("toolName") or raw.get("name") if isinstance(raw, dict) else None
            call_id = raw.get("id") if isinstance(raw, dict) else None
            return cls(
                tool_name=name if isinstance(name, str) else "",
                call_id=call_id if isinstance(call_id, str) else None,
                error=f"Malformed tool call: {location}: {first.get('msg')}",
            )


class AgentOutput(BaseModel):
    """Generated text and proposed tool calls from one agent invocation."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list, alias="toolCalls")

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _parse_each_call(cls, value: Any) -> Any:
        # One bad call must not invalidate its siblings
        if value is None:
            return []
        if isinstance(value, list):
            return [ToolCall.parse(item) for item in value]
        return value

    def has_content(self) -> bool:
        """True when the agent produced text or at least one tool call."""
        return bool(self.text and self.text.strip()) or bool(self.tool_calls)


class MessagePart(BaseModel):
    """One part of a multi-part inbound message."""
    model_config = ConfigDict(extra="allow")

    kind: str
    text: Optional[str] = None
    data: Any = None


class MessageMetadata(BaseModel):
    """Platform metadata attached to an inbound message."""
    model_config = ConfigDict(extra="allow")

    telex_user_id: Optional[str] = None
    telex_channel_id: Optional[str] = None
    org_id: Optional[str] = None


class InboundMessage(BaseModel):
    """The message carried by a message/send request."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: str = "message"
    role: str = "user"
    parts: List[MessagePart]
    metadata: Optional[MessageMetadata] = None
    message_id: Optional[str] = Field(default=None, alias="messageId")


class RequestConfiguration(BaseModel):
    """Delivery configuration of a message/send request."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    accepted_output_modes: List[str] = Field(default_factory=list, alias="acceptedOutputModes")
    history_length: Optional[int] = Field(default=None, alias="historyLength")
    push_notification_config: Any = Field(default=None, alias="pushNotificationConfig")
    blocking: bool = True


class MessageSendParams(BaseModel):
    """Params of a message/send request."""
    message: InboundMessage
    configuration: Optional[RequestConfiguration] = None


class MessageSendRequest(BaseModel):
    """JSON-RPC message/send envelope."""
    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    id: Optional[Any] = None
    method: str = "message/send"
    params: MessageSendParams


class ChatMessage(BaseModel):
    """Message of the legacy flat chat envelope."""
    model_config = ConfigDict(extra="allow")

    role: str
    content: str
    timestamp: Optional[str] = None


class LegacyChatRequest(BaseModel):
    """Legacy flat chat envelope."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    messages: List[ChatMessage]
    context: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    channel_id: Optional[str] = Field(default=None, alias="channelId")


class RequestContext(BaseModel):
    """Identifiers extracted from an inbound request."""
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    message_id: Optional[str] = None
    request_id: Optional[Any] = None


class ToolResultSummary(BaseModel):
    """Outcome of one tool call as reported in response metadata."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class ResponseMetadata(BaseModel):
    """Metadata of an outbound response."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(default_factory=utc_now_iso)
    tools_used: List[str] = Field(default_factory=list, alias="toolsUsed")
    tool_results: Optional[List[ToolResultSummary]] = Field(default=None, alias="toolResults")
    error: Optional[str] = None


class OutboundResponse(BaseModel):
    """Reply returned to the chat platform."""
    role: Literal["assistant"] = "assistant"
    content: str
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True)
