"""
Model agent and invocation guard for the executive assistant.
"""

import asyncio
import logging
from typing import Dict, Any, Optional, List, Protocol, Union
from langchain_aws import ChatBedrock
from langchain_core.messages import HumanMessage, SystemMessage

from .config import Config
from .exceptions import AgentError, AgentInvocationError, AgentTimeoutError, EmptyAgentResponseError
from .models import AgentOutput
from .tools import ToolRegistry


class Agent(Protocol):
    """Anything that turns user text into generated text and proposed tool calls."""

    async def generate(self, text: str) -> Union[AgentOutput, Dict[str, Any]]:
        ...


class ExecutiveAgent:
    """Executive assistant agent backed by a Bedrock chat model with tool calling."""

    def __init__(self, config: Config, tool_registry: ToolRegistry, logger: logging.Logger):
        """Initialize the agent and bind the registry's tools to the model."""
        self.name = config.agent.name
        self.config = config
        self.tool_registry = tool_registry
        self.logger = logger
        self.system_prompt = self._create_system_prompt()

        try:
            llm_kwargs: Dict[str, Any] = {
                "model_id": config.llm.model,
                "region_name": config.llm.region,
                "model_kwargs": {
                    "temperature": config.llm.temperature,
                    "max_tokens": config.llm.max_tokens,
                },
            }
            if config.llm.access_key_id and config.llm.secret_access_key:
                llm_kwargs["aws_access_key_id"] = config.llm.access_key_id
                llm_kwargs["aws_secret_access_key"] = config.llm.secret_access_key

            self.llm = ChatBedrock(**llm_kwargs)
            self.llm_with_tools = self.llm.bind_tools(tool_registry.tool_schemas())
        except Exception as e:
            raise AgentError(f"Failed to initialize LLM for {self.name}", "LLM_INIT_ERROR", {"original_error": str(e)})

    def _create_system_prompt(self) -> str:
        """Create system prompt for the assistant."""
        return f"""
        You are {self.name}, an advanced AI executive assistant designed to help busy professionals manage their calendars, emails, and tasks efficiently.

        Your capabilities include:
        1. Calendar Management: Schedule, update, and query calendar events (tool: calendar)
        2. Email Management: Read, draft, and send emails via Gmail (tool: gmail)
        3. Task Management: Create, track, and organize tasks (tool: tasks)

        Every tool takes an "action" and a "params" object. To create several tasks in one request,
        call tasks with action "create_task" and params {{"tasks": [{{"title": ...}}, ...]}};
        shared priority, dueDate or description can be given next to "tasks".

        Guidelines for interaction:
        - Be professional yet friendly and approachable
        - Provide clear summaries of calendar events and emails
        - When scheduling, consider time zones and business hours
        - For ambiguous requests, ask clarifying questions instead of calling a tool
        - Use ISO-8601 for every date and time you pass to a tool

        When responding:
        - Start with a brief acknowledgment of the request
        - Provide the requested information clearly and concisely
        - Suggest relevant follow-up actions when appropriate
        """

    @staticmethod
    def _extract_text(content: Any) -> str:
        """Text of a model reply whose content is a string or a list of content blocks."""
        if isinstance(content, str):
            return content
        texts: List[str] = []
        for block in content or []:
            if isinstance(block, str):
                texts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                texts.append(block.get("text", ""))
        return "".join(texts)

    async def generate(self, text: str) -> AgentOutput:
        """Ask the model for a reply and tool calls."""
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=text)
        ]

        try:
            response = await self.llm_with_tools.ainvoke(messages)
        except Exception as e:
            self.logger.error(f"LLM call failed for {self.name}: {str(e)}")
            raise AgentError(f"LLM call failed for {self.name}: {str(e)}", "LLM_CALL_ERROR", {"original_error": str(e)})

        tool_calls = [
            {"toolName": call.get("name"), "args": call.get("args") or {}, "id": call.get("id")}
            for call in getattr(response, "tool_calls", None) or []
        ]

        output = AgentOutput.model_validate({
            "text": self._extract_text(response.content),
            "toolCalls": tool_calls,
        })
        malformed = [call.error for call in output.tool_calls if call.error]
        if malformed:
            self.logger.warning(f"Agent proposed {len(malformed)} malformed tool calls: {malformed[0]}")

        self.logger.info(
            f"Agent response generated: {len(output.text or '')} characters, {len(output.tool_calls)} tool calls"
        )
        return output


class AgentInvocationGuard:
    """Invokes an agent under a deadline and checks that it answered."""

    def __init__(self, agent: Agent, logger: logging.Logger, timeout_seconds: float = 30.0):
        """Initialize the guard."""
        self.agent = agent
        self.logger = logger
        self.timeout_seconds = timeout_seconds

    async def invoke(self, text: str) -> AgentOutput:
        """Generate a response for text, failing with AgentInvocationError on timeout or empty output."""
        try:
            try:
                # wait_for cancels the pending generation when the deadline passes
                response = await asyncio.wait_for(self.agent.generate(text), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                raise AgentTimeoutError(self.timeout_seconds)

            if response is None:
                raise EmptyAgentResponseError("Agent returned no response")
            if isinstance(response, dict):
                response = AgentOutput.model_validate(response)
            if not response.has_content():
                raise EmptyAgentResponseError()

            return response

        except Exception as e:
            error = AgentInvocationError(e)
            self.logger.error(error.message)
            raise error from e
