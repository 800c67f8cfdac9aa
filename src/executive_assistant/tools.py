"""
Tools for the executive assistant.
"""

import logging
from typing import Dict, Any, Optional, List, Callable, Awaitable
from abc import ABC, abstractmethod

from .actions import (
    ActionParams, CreateEventParams, CreateTaskParams, DeleteEventParams, DraftReplyParams,
    ListEventsParams, ListMessagesParams, ListTasksParams, SendMessageParams, TaskIdParams,
    UpdateEventParams, UpdateTaskParams, actions_for, parse_action_params,
)
from .config import Config
from .exceptions import AssistantError, ConfigurationError
from .google_services import GmailService, GoogleCalendarService
from .models import ActionResult
from .task_store import TaskStore

Handler = Callable[[Any], Awaitable[ActionResult]]


class BaseTool(ABC):
    """Base class for all tools.

    A tool owns a closed action vocabulary. `execute` validates the action and
    its parameters, runs the matching handler and always returns an
    ActionResult; nothing raised by a handler escapes.
    """

    name = ""
    description = ""

    def __init__(self, config: Config, logger: logging.Logger):
        """Initialize tool with configuration and logger."""
        self.config = config
        self.logger = logger
        self._handlers = self._register_handlers()

        missing = set(actions_for(self.name)) - set(self._handlers)
        if missing:
            raise ConfigurationError(f"Tool '{self.name}' has no handler for: {', '.join(sorted(missing))}")

    @abstractmethod
    def _register_handlers(self) -> Dict[str, Handler]:
        """Map each action name to its handler."""
        pass

    @property
    def enabled(self) -> bool:
        return True

    @property
    def actions(self) -> List[str]:
        return actions_for(self.name)

    async def execute(self, action: str, params: Optional[Dict[str, Any]] = None) -> ActionResult:
        """Execute one action."""
        self.logger.info(f"Executing {self.name} tool action: {action}")

        if not self.enabled:
            return ActionResult(success=False, error=f"{self.name} tool is disabled in configuration")

        try:
            parsed = parse_action_params(self.name, action, params)
            return await self._handlers[action](parsed)
        except AssistantError as e:
            self.logger.warning(f"{self.name} tool rejected action '{action}': {e.message}")
            return ActionResult(success=False, error=e.message)
        except Exception as e:
            return self._handle_error(e, action)

    def _handle_error(self, error: Exception, operation: str) -> ActionResult:
        """Handle tool errors consistently."""
        self.logger.error(f"Error in {self.name} {operation}: {str(error)}")
        return ActionResult(success=False, error=str(error) or error.__class__.__name__)

    def schema(self) -> Dict[str, Any]:
        """Function-calling schema offered to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "action": {
                            "type": "string",
                            "enum": self.actions,
                            "description": f"Action to perform: {', '.join(self.actions)}",
                        },
                        "params": {
                            "type": "object",
                            "description": "Parameters for the action",
                        },
                    },
                    "required": ["action"],
                },
            },
        }


class CalendarTool(BaseTool):
    """Calendar event management backed by Google Calendar."""

    name = "calendar"
    description = (
        "Manage calendar events. params: list_events {maxResults, timeMin, timeMax}; "
        "create_event {event: {summary, description, start: {dateTime, timeZone}, end: {dateTime, timeZone}, attendees}}; "
        "update_event {eventId, updates}; delete_event {eventId}; get_today and get_week take no params."
    )

    def __init__(self, config: Config, logger: logging.Logger, service: Optional[GoogleCalendarService] = None):
        """Initialize calendar tool."""
        self.service = service or GoogleCalendarService(config.google, logger)
        super().__init__(config, logger)

    @property
    def enabled(self) -> bool:
        return self.config.tools.calendar.enabled

    def _register_handlers(self) -> Dict[str, Handler]:
        return {
            "list_events": self._list_events,
            "get_today": self._get_today,
            "get_week": self._get_week,
            "create_event": self._create_event,
            "update_event": self._update_event,
            "delete_event": self._delete_event,
        }

    async def _list_events(self, params: ListEventsParams) -> ActionResult:
        max_results = params.max_results or self.config.tools.calendar.max_results
        return await self.service.list_events(max_results, params.time_min, params.time_max)

    async def _get_today(self, params: ActionParams) -> ActionResult:
        return await self.service.get_events_for_today()

    async def _get_week(self, params: ActionParams) -> ActionResult:
        return await self.service.get_events_for_week()

    async def _create_event(self, params: CreateEventParams) -> ActionResult:
        return await self.service.create_event(params.event)

    async def _update_event(self, params: UpdateEventParams) -> ActionResult:
        return await self.service.update_event(params.event_id, params.updates)

    async def _delete_event(self, params: DeleteEventParams) -> ActionResult:
        return await self.service.delete_event(params.event_id)


class GmailTool(BaseTool):
    """Mail management backed by Gmail."""

    name = "gmail"
    description = (
        "Manage Gmail messages. params: list_messages {maxResults, query}; "
        "send_message {message: {to, subject, body}}; draft_reply {messageId, replyContent}; "
        "get_unread_count takes no params."
    )

    def __init__(self, config: Config, logger: logging.Logger, service: Optional[GmailService] = None):
        """Initialize Gmail tool."""
        self.service = service or GmailService(config.google, logger)
        super().__init__(config, logger)

    @property
    def enabled(self) -> bool:
        return self.config.tools.gmail.enabled

    def _register_handlers(self) -> Dict[str, Handler]:
        return {
            "list_messages": self._list_messages,
            "send_message": self._send_message,
            "draft_reply": self._draft_reply,
            "get_unread_count": self._get_unread_count,
        }

    async def _list_messages(self, params: ListMessagesParams) -> ActionResult:
        max_results = params.max_results or self.config.tools.gmail.max_results
        return await self.service.list_messages(max_results, params.query)

    async def _send_message(self, params: SendMessageParams) -> ActionResult:
        return await self.service.send_message(params.message)

    async def _draft_reply(self, params: DraftReplyParams) -> ActionResult:
        return await self.service.draft_reply(params.message_id, params.reply_content)

    async def _get_unread_count(self, params: ActionParams) -> ActionResult:
        return await self.service.get_unread_count()


class TaskTool(BaseTool):
    """Task management backed by the in-memory task store."""

    name = "tasks"
    description = (
        "Manage tasks. params: create_task {title, description, dueDate, priority: low|medium|high} "
        "or {tasks: [{title, ...}], priority, dueDate, description} to create several at once; "
        "list_tasks {status: pending|in-progress|completed, priority}; update_task {taskId, updates}; "
        "complete_task {taskId}; delete_task {taskId}."
    )

    def __init__(self, config: Config, logger: logging.Logger, store: Optional[TaskStore] = None):
        """Initialize task tool."""
        self.store = store if store is not None else TaskStore(logger)
        super().__init__(config, logger)

    @property
    def enabled(self) -> bool:
        return self.config.tools.tasks.enabled

    def _register_handlers(self) -> Dict[str, Handler]:
        return {
            "create_task": self._create_task,
            "list_tasks": self._list_tasks,
            "update_task": self._update_task,
            "complete_task": self._complete_task,
            "delete_task": self._delete_task,
        }

    async def _create_task(self, params: CreateTaskParams) -> ActionResult:
        task = self.store.create(params.title, params.description, params.due_date, params.priority)
        return ActionResult(success=True, data=task.to_dict(), message=f'Task "{task.title}" created successfully')

    async def _list_tasks(self, params: ListTasksParams) -> ActionResult:
        tasks = self.store.list(status=params.status, priority=params.priority)
        return ActionResult(success=True, data=[t.to_dict() for t in tasks], message=f"Found {len(tasks)} tasks")

    async def _update_task(self, params: UpdateTaskParams) -> ActionResult:
        task = self.store.update(params.task_id, params.updates)
        return ActionResult(success=True, data=task.to_dict(), message="Task updated successfully")

    async def _complete_task(self, params: TaskIdParams) -> ActionResult:
        task = self.store.complete(params.task_id)
        return ActionResult(success=True, data=task.to_dict(), message=f'Task "{task.title}" marked as completed')

    async def _delete_task(self, params: TaskIdParams) -> ActionResult:
        self.store.delete(params.task_id)
        return ActionResult(success=True, message="Task deleted successfully")


class ToolRegistry:
    """Registry for managing and executing tools."""

    def __init__(self, config: Config, logger: logging.Logger, task_store: Optional[TaskStore] = None,
                 calendar_service: Optional[GoogleCalendarService] = None,
                 gmail_service: Optional[GmailService] = None):
        """Initialize tool registry."""
        self.config = config
        self.logger = logger
        self.tools: Dict[str, BaseTool] = {}

        self._register_tools(task_store, calendar_service, gmail_service)

    def _register_tools(self, task_store: Optional[TaskStore], calendar_service: Optional[GoogleCalendarService],
                        gmail_service: Optional[GmailService]) -> None:
        """Register all available tools."""
        self.tools["calendar"] = CalendarTool(self.config, self.logger, calendar_service)
        self.tools["gmail"] = GmailTool(self.config, self.logger, gmail_service)
        self.tools["tasks"] = TaskTool(self.config, self.logger, task_store)

    async def execute_tool(self, tool_name: str, action: str, params: Optional[Dict[str, Any]] = None) -> ActionResult:
        """Execute a tool action by tool name."""
        tool = self.tools.get(tool_name)
        if tool is None:
            self.logger.warning(f"Unknown tool requested: {tool_name}")
            return ActionResult(success=False, error=f"Unknown tool: {tool_name}")

        return await tool.execute(action, params or {})

    def list_tools(self) -> List[str]:
        """List available tools."""
        return list(self.tools.keys())

    def get_tool(self, tool_name: str) -> Optional[BaseTool]:
        """Get a tool instance by name."""
        return self.tools.get(tool_name)

    def get_tool_info(self, tool_name: str) -> Dict[str, Any]:
        """Get information about a tool."""
        if tool_name not in self.tools:
            return {"error": f"Tool '{tool_name}' not found"}

        tool = self.tools[tool_name]
        return {
            "name": tool_name,
            "class": tool.__class__.__name__,
            "enabled": tool.enabled,
            "actions": tool.actions
        }

    def tool_schemas(self) -> List[Dict[str, Any]]:
        """Schemas of the enabled tools, for binding to the model."""
        return [tool.schema() for tool in self.tools.values() if tool.enabled]
