"""
Custom exceptions for the executive assistant.
Request-fatal errors abort a request; tool errors are converted into failed action results.
"""

from typing import Optional, Dict, Any


class AssistantError(Exception):
    """Base exception for all executive assistant errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the exception."""
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(AssistantError):
    """Raised when there's a configuration error."""
    pass


class EmptyMessageError(AssistantError):
    """Raised when an inbound request carries no usable text."""

    def __init__(self, message: str = "No text content found in the request message", details: Optional[Dict[str, Any]] = None):
        """Initialize the empty message error."""
        super().__init__(message, "EMPTY_MESSAGE", details)


class InvalidRequestError(AssistantError):
    """Raised when an inbound envelope matches none of the accepted shapes."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize the invalid request error."""
        super().__init__(message, "INVALID_REQUEST", details)


class AgentError(AssistantError):
    """Raised when the model agent fails."""
    pass


class AgentTimeoutError(AgentError):
    """Raised when the agent does not answer before the deadline."""

    def __init__(self, timeout_seconds: float):
        """Initialize the timeout error."""
        super().__init__(
            f"Agent response timed out after {timeout_seconds:g} seconds",
            "AGENT_TIMEOUT",
            {"timeout_seconds": timeout_seconds}
        )
        self.timeout_seconds = timeout_seconds


class EmptyAgentResponseError(AgentError):
    """Raised when the agent returns neither text nor tool calls."""

    def __init__(self, message: str = "Agent returned an empty response"):
        """Initialize the empty response error."""
        super().__init__(message, "EMPTY_AGENT_RESPONSE")


class AgentInvocationError(AgentError):
    """Wraps any failure of the agent invocation with request context."""

    def __init__(self, cause: Exception):
        """Initialize the invocation error from its cause."""
        cause_message = getattr(cause, "message", None) or str(cause) or cause.__class__.__name__
        super().__init__(
            f"Failed to generate response: {cause_message}",
            getattr(cause, "error_code", None) or "AGENT_INVOCATION_ERROR",
            {"original_error": cause_message}
        )
        self.cause = cause


class ToolError(AssistantError):
    """Raised when a tool encounters an error."""

    def __init__(self, message: str, tool_name: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the tool error."""
        super().__init__(message, error_code, details)
        self.tool_name = tool_name


class ToolExecutionError(ToolError):
    """Raised when a backing service call fails."""
    pass


class UnknownToolError(ToolError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, tool_name: str):
        """Initialize the unknown tool error."""
        super().__init__(f"Unknown tool: {tool_name}", tool_name, "UNKNOWN_TOOL")


class UnknownActionError(ToolError):
    """Raised when an action is outside a tool's vocabulary."""

    def __init__(self, action: str, tool_name: str):
        """Initialize the unknown action error."""
        super().__init__(f"Unknown action: {action}", tool_name, "UNKNOWN_ACTION", {"action": action})
        self.action = action


class MissingParameterError(ToolError):
    """Raised when a required action parameter is absent or invalid."""

    def __init__(self, message: str, tool_name: str, action: str):
        """Initialize the missing parameter error."""
        super().__init__(message, tool_name, "MISSING_PARAMETER", {"action": action})
        self.action = action


class TaskNotFoundError(AssistantError):
    """Raised when a task id is not in the store."""

    def __init__(self, task_id: str):
        """Initialize the task not found error."""
        super().__init__("Task not found", "TASK_NOT_FOUND", {"task_id": task_id})
        self.task_id = task_id
