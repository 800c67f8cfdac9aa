"""
Workflow orchestrator for the executive assistant.
Runs normalization, agent invocation, tool dispatch and response composition as a LangGraph workflow.
"""

import logging
from typing import Dict, Any
from langgraph.graph import StateGraph, START, END

from .agents import AgentInvocationGuard
from .composer import ResponseComposer
from .dispatcher import ToolCallDispatcher
from .exceptions import AssistantError
from .models import OutboundResponse
from .normalization import MessageNormalizer
from .state import RequestState


class WorkflowOrchestrator:
    """Handles the LangGraph workflow orchestration."""

    def __init__(self, normalizer: MessageNormalizer, guard: AgentInvocationGuard, dispatcher: ToolCallDispatcher,
                 composer: ResponseComposer, logger: logging.Logger):
        """Initialize the workflow orchestrator."""
        self.normalizer = normalizer
        self.guard = guard
        self.dispatcher = dispatcher
        self.composer = composer
        self.logger = logger

        # Build workflow
        self.workflow = self._build_workflow()

    def _build_workflow(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(RequestState)

        # Add nodes
        workflow.add_node("normalize_message", self._normalize_message)
        workflow.add_node("invoke_agent", self._invoke_agent)
        workflow.add_node("dispatch_tools", self._dispatch_tools)
        workflow.add_node("compose_response", self._compose_response)
        workflow.add_node("handle_error", self._handle_error)

        # Add edges
        workflow.add_edge(START, "normalize_message")

        workflow.add_conditional_edges(
            "normalize_message",
            self._error_router,
            {
                "ok": "invoke_agent",
                "error": "handle_error"
            }
        )

        workflow.add_conditional_edges(
            "invoke_agent",
            self._error_router,
            {
                "ok": "dispatch_tools",
                "error": "handle_error"
            }
        )

        workflow.add_edge("dispatch_tools", "compose_response")

        # Final edges
        workflow.add_edge("compose_response", END)
        workflow.add_edge("handle_error", END)

        return workflow.compile()

    async def _normalize_message(self, state: RequestState) -> RequestState:
        """Extract the user's text from the inbound payload."""
        try:
            normalized = self.normalizer.normalize(state.payload)
            state.text = normalized.text
            state.context = normalized.context
            self.logger.info(
                f"Processing request from user {normalized.context.user_id or 'unknown'} "
                f"in channel {normalized.context.channel_id or 'unknown'}"
            )
            return state

        except AssistantError as e:
            self.logger.warning(f"Message normalization failed: {e.message}")
            state.error = e.message
            return state

    async def _invoke_agent(self, state: RequestState) -> RequestState:
        """Ask the agent for a reply and tool calls."""
        try:
            state.agent_output = await self.guard.invoke(state.text)
            return state

        except AssistantError as e:
            state.error = e.message
            return state

    async def _dispatch_tools(self, state: RequestState) -> RequestState:
        """Execute the proposed tool calls."""
        try:
            state.outcome = await self.dispatcher.dispatch(state.agent_output.tool_calls)
            return state

        except Exception as e:
            self.logger.error(f"Error in tool dispatch: {str(e)}")
            state.error = f"Failed to execute tools: {str(e)}"
            return state

    async def _compose_response(self, state: RequestState) -> RequestState:
        """Build the outbound reply."""
        try:
            if state.error:
                tools_used = state.outcome.tools_used if state.outcome else []
                state.response = self.composer.compose_error(state.error, tools_used)
            else:
                state.response = self.composer.compose(state.agent_output, state.outcome)
                self.logger.info(
                    f"Response composed: {len(state.response.content)} characters, "
                    f"tools used: {state.response.metadata.tools_used}"
                )
            return state

        except Exception as e:
            self.logger.error(f"Error in response composition: {str(e)}")
            state.error = "Failed to compose response"
            state.response = self.composer.compose_error(state.error)
            return state

    async def _handle_error(self, state: RequestState) -> RequestState:
        """Build the fallback reply for a request that failed before tool dispatch."""
        error_message = state.error or "An unexpected error occurred"
        state.response = self.composer.compose_error(error_message)

        self.logger.error(f"Workflow error handled: {error_message}")
        return state

    def _error_router(self, state: RequestState) -> str:
        """Route on whether the previous node recorded an error."""
        return "error" if state.error else "ok"

    async def process_request(self, payload: Dict[str, Any]) -> OutboundResponse:
        """Run one inbound payload through the workflow."""
        result = await self.workflow.ainvoke(RequestState(payload=payload))

        # Extract the response - handle both dict and object results
        if isinstance(result, dict):
            response = result.get("response")
        else:
            response = getattr(result, "response", None)

        if response is None:
            raise RuntimeError("Workflow finished without a response")
        if isinstance(response, dict):
            response = OutboundResponse.model_validate(response)
        return response
