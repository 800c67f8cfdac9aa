"""
Response composition for the executive assistant.
"""

import logging
from typing import List, Optional

from .dispatcher import DispatchOutcome
from .models import ActionResult, AgentOutput, OutboundResponse, ResponseMetadata, ToolResultSummary


DEFAULT_FALLBACK_MESSAGE = "I apologize, but I was unable to process your request. Please try again."
DEFAULT_ERROR_MESSAGE = "I encountered an error while processing your request. Please try again or rephrase your question."


def result_message(result: ActionResult) -> Optional[str]:
    """User-facing message of a result, falling back to a message embedded in its data."""
    if result.message:
        return result.message
    if isinstance(result.data, dict):
        embedded = result.data.get("message")
        if isinstance(embedded, str) and embedded:
            return embedded
    return None


class ResponseComposer:
    """Merges agent text and tool results into the outbound reply."""

    def __init__(self, logger: logging.Logger, fallback_message: str = DEFAULT_FALLBACK_MESSAGE,
                 error_message: str = DEFAULT_ERROR_MESSAGE):
        """Initialize response composer."""
        self.logger = logger
        self.fallback_message = fallback_message
        self.error_message = error_message

    def compose(self, agent_output: Optional[AgentOutput], outcome: Optional[DispatchOutcome] = None) -> OutboundResponse:
        """Build the reply for a request that reached the agent."""
        outcome = outcome or DispatchOutcome()
        content = agent_output.text if agent_output and agent_output.text and agent_output.text.strip() else ""

        tool_messages = self.success_messages(outcome.results)
        if tool_messages:
            joined = "\n".join(tool_messages)
            content = f"{content}\n\n{joined}" if content else joined

        if not content:
            self.logger.warning("Composed response is empty, using fallback message")
            content = self.fallback_message

        metadata = ResponseMetadata(
            tools_used=list(outcome.tools_used),
            tool_results=[self.summarize(result) for result in outcome.results],
        )
        return OutboundResponse(content=content, metadata=metadata)

    def compose_error(self, error: str, tools_used: Optional[List[str]] = None) -> OutboundResponse:
        """Build the fallback reply for a failed request."""
        return OutboundResponse(
            content=self.error_message,
            metadata=ResponseMetadata(tools_used=tools_used or [], error=error),
        )

    @staticmethod
    def success_messages(results: List[ActionResult]) -> List[str]:
        """Non-empty messages of the successful results, in order."""
        messages = []
        for result in results:
            if not result.success:
                continue
            message = result_message(result)
            if message:
                messages.append(message)
        return messages

    @staticmethod
    def summarize(result: ActionResult) -> ToolResultSummary:
        """Per-call summary for response metadata."""
        if result.success:
            return ToolResultSummary(success=True, message=result_message(result))
        return ToolResultSummary(success=False, error=result.error or result.message or "Unknown error")
