"""
Typed parameter records for every tool action.

Each (tool, action) pair maps to one pydantic model. Adapters parse the raw
parameter dict the agent emitted into that model before any backing service
is called, so handlers only ever see validated, typed parameters.
"""

from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import MissingParameterError, UnknownActionError, UnknownToolError
from .models import CalendarEvent, GmailMessage, TaskPriority, TaskStatus


class ActionParams(BaseModel):
    """Base class for action parameter records."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    missing_message: ClassVar[str] = "Required parameters are missing"

    @classmethod
    def required_fields(cls) -> List[str]:
        """Wire names of the required fields."""
        return [field.alias or name for name, field in cls.model_fields.items() if field.is_required()]

    @classmethod
    def describe_error(cls, action: str, error: ValidationError) -> str:
        """Turn a validation failure into a user-facing message."""
        required = cls.required_fields()
        for detail in error.errors():
            loc = detail.get("loc", ())
            if len(loc) == 1 and loc[0] in required:
                if detail.get("type") == "missing" or detail.get("input") in (None, ""):
                    return cls.missing_message
        first = error.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "params"
        return f"Invalid parameters for {action}: {location}: {first.get('msg')}"


class NoParams(ActionParams):
    """Action without parameters."""
    pass


# Calendar

class ListEventsParams(ActionParams):
    max_results: Optional[int] = Field(default=None, alias="maxResults", ge=1)
    time_min: Optional[str] = Field(default=None, alias="timeMin")
    time_max: Optional[str] = Field(default=None, alias="timeMax")


class CreateEventParams(ActionParams):
    missing_message: ClassVar[str] = "Event data is required"

    event: CalendarEvent


class UpdateEventParams(ActionParams):
    missing_message: ClassVar[str] = "Event ID is required"

    event_id: str = Field(alias="eventId", min_length=1)
    updates: Dict[str, Any] = {}

    @field_validator("updates", mode="before")
    @classmethod
    def _default_updates(cls, value: Any) -> Any:
        return {} if value is None else value


class DeleteEventParams(ActionParams):
    missing_message: ClassVar[str] = "Event ID is required"

    event_id: str = Field(alias="eventId", min_length=1)


# Gmail

class ListMessagesParams(ActionParams):
    max_results: Optional[int] = Field(default=None, alias="maxResults", ge=1)
    query: Optional[str] = None


class SendMessageParams(ActionParams):
    missing_message: ClassVar[str] = "Message data is required"

    message: GmailMessage


class DraftReplyParams(ActionParams):
    missing_message: ClassVar[str] = "Message ID and reply content are required"

    message_id: str = Field(alias="messageId", min_length=1)
    reply_content: str = Field(alias="replyContent", min_length=1)


# Tasks

class CreateTaskParams(ActionParams):
    missing_message: ClassVar[str] = "Task title is required"

    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: Optional[TaskPriority] = None


class ListTasksParams(ActionParams):
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None


class TaskIdParams(ActionParams):
    missing_message: ClassVar[str] = "Task ID is required"

    task_id: str = Field(alias="taskId", min_length=1)


class UpdateTaskParams(TaskIdParams):
    updates: Dict[str, Any] = {}

    @field_validator("updates", mode="before")
    @classmethod
    def _default_updates(cls, value: Any) -> Any:
        return {} if value is None else value


ACTION_PARAMS: Dict[str, Dict[str, Type[ActionParams]]] = {
    "calendar": {
        "list_events": ListEventsParams,
        "get_today": NoParams,
        "get_week": NoParams,
        "create_event": CreateEventParams,
        "update_event": UpdateEventParams,
        "delete_event": DeleteEventParams,
    },
    "gmail": {
        "list_messages": ListMessagesParams,
        "send_message": SendMessageParams,
        "draft_reply": DraftReplyParams,
        "get_unread_count": NoParams,
    },
    "tasks": {
        "create_task": CreateTaskParams,
        "list_tasks": ListTasksParams,
        "update_task": UpdateTaskParams,
        "complete_task": TaskIdParams,
        "delete_task": TaskIdParams,
    },
}


def actions_for(tool_name: str) -> List[str]:
    """Action vocabulary of a tool, in declaration order."""
    if tool_name not in ACTION_PARAMS:
        raise UnknownToolError(tool_name)
    return list(ACTION_PARAMS[tool_name].keys())


def parse_action_params(tool_name: str, action: str, params: Optional[Dict[str, Any]] = None) -> ActionParams:
    """Validate raw parameters for a (tool, action) pair into its typed record."""
    actions = ACTION_PARAMS.get(tool_name)
    if actions is None:
        raise UnknownToolError(tool_name)

    params_model = actions.get(action)
    if params_model is None:
        raise UnknownActionError(action, tool_name)

    try:
        return params_model.model_validate(params or {})
    except ValidationError as e:
        raise MissingParameterError(params_model.describe_error(action, e), tool_name, action)
