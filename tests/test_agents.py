"""
Test the model agent and the invocation guard.
"""

import pytest
from unittest.mock import Mock, AsyncMock, patch

from executive_assistant.agents import AgentInvocationGuard, ExecutiveAgent
from executive_assistant.exceptions import AgentError, AgentInvocationError
from executive_assistant.models import AgentOutput, ToolArgs, ToolCall

from conftest import FakeAgent


@pytest.fixture
def mock_registry():
    """Registry double exposing tool schemas."""
    registry = Mock()
    registry.tool_schemas.return_value = [{"type": "function", "function": {"name": "tasks"}}]
    return registry


@pytest.fixture
def bedrock():
    """Patch the Bedrock chat model."""
    with patch("executive_assistant.agents.ChatBedrock") as chat_cls:
        bound = Mock()
        bound.ainvoke = AsyncMock()
        chat_cls.return_value.bind_tools.return_value = bound
        yield chat_cls, bound


class TestExecutiveAgent:
    """Test the Bedrock-backed agent."""

    def test_initialization_binds_tools(self, config, mock_logger, mock_registry, bedrock):
        """Test the model is created from config and given the tool schemas."""
        chat_cls, _ = bedrock

        agent = ExecutiveAgent(config, mock_registry, mock_logger)

        kwargs = chat_cls.call_args.kwargs
        assert kwargs["model_id"] == config.llm.model
        assert kwargs["region_name"] == config.llm.region
        assert "aws_access_key_id" not in kwargs
        chat_cls.return_value.bind_tools.assert_called_once_with(mock_registry.tool_schemas.return_value)
        assert "ExecuMate" in agent.system_prompt

    def test_initialization_with_explicit_keys(self, config, mock_logger, mock_registry, bedrock):
        """Test explicit AWS keys are forwarded."""
        chat_cls, _ = bedrock
        config.llm.access_key_id = "key"
        config.llm.secret_access_key = "secret"

        ExecutiveAgent(config, mock_registry, mock_logger)

        assert chat_cls.call_args.kwargs["aws_access_key_id"] == "key"

    def test_initialization_failure(self, config, mock_logger, mock_registry, bedrock):
        """Test model construction errors are reported as agent errors."""
        chat_cls, _ = bedrock
        chat_cls.side_effect = ValueError("no region")

        with pytest.raises(AgentError) as exc_info:
            ExecutiveAgent(config, mock_registry, mock_logger)

        assert exc_info.value.error_code == "LLM_INIT_ERROR"

    @pytest.mark.asyncio
    async def test_generate_maps_tool_calls(self, config, mock_logger, mock_registry, bedrock):
        """Test model tool calls become ToolCall records."""
        _, bound = bedrock
        bound.ainvoke.return_value = Mock(
            content="Creating that task now.",
            tool_calls=[{"name": "tasks", "args": {"action": "create_task", "params": {"title": "Call bank"}}, "id": "call_1"}],
        )
        agent = ExecutiveAgent(config, mock_registry, mock_logger)

        output = await agent.generate("Remind me to call the bank")

        assert output.text == "Creating that task now."
        assert len(output.tool_calls) == 1
        call = output.tool_calls[0]
        assert call.tool_name == "tasks"
        assert call.args.action == "create_task"
        assert call.args.params == {"title": "Call bank"}
        assert call.call_id == "call_1"

        messages = bound.ainvoke.await_args.args[0]
        assert messages[-1].content == "Remind me to call the bank"

    @pytest.mark.asyncio
    async def test_generate_with_content_blocks(self, config, mock_logger, mock_registry, bedrock):
        """Test block-list content is flattened to text."""
        _, bound = bedrock
        bound.ainvoke.return_value = Mock(
            content=[{"type": "text", "text": "Hello"}, {"type": "tool_use", "id": "x"}, {"type": "text", "text": " there"}],
            tool_calls=[],
        )
        agent = ExecutiveAgent(config, mock_registry, mock_logger)

        output = await agent.generate("hi")

        assert output.text == "Hello there"
        assert output.tool_calls == []

    @pytest.mark.asyncio
    async def test_generate_keeps_siblings_of_malformed_call(self, config, mock_logger, mock_registry, bedrock):
        """Test a malformed call is flagged in place and the valid calls survive."""
        _, bound = bedrock
        bound.ainvoke.return_value = Mock(content="", tool_calls=[
            {"name": "tasks", "args": {"action": "list_tasks"}, "id": "c1"},
            {"name": "tasks", "args": "create_task", "id": "c2"},
            {"name": "gmail", "args": {}, "id": "c3"},
        ])
        agent = ExecutiveAgent(config, mock_registry, mock_logger)

        output = await agent.generate("hi")

        assert [call.call_id for call in output.tool_calls] == ["c1", "c2", "c3"]
        assert output.tool_calls[0].error is None
        assert output.tool_calls[1].tool_name == "tasks"
        assert output.tool_calls[1].error.startswith("Malformed tool call: args")
        assert output.tool_calls[2].error is None
        assert output.tool_calls[2].args.action == ""
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_generate_llm_failure(self, config, mock_logger, mock_registry, bedrock):
        """Test model errors are wrapped."""
        _, bound = bedrock
        bound.ainvoke.side_effect = RuntimeError("throttled")
        agent = ExecutiveAgent(config, mock_registry, mock_logger)

        with pytest.raises(AgentError) as exc_info:
            await agent.generate("hi")

        assert exc_info.value.error_code == "LLM_CALL_ERROR"
        assert "throttled" in exc_info.value.message


class TestAgentInvocationGuard:
    """Test deadline and emptiness checks."""

    @pytest.mark.asyncio
    async def test_returns_agent_output(self, mock_logger):
        """Test a normal answer passes through."""
        output = AgentOutput(text="Hi!")
        guard = AgentInvocationGuard(FakeAgent(output), mock_logger, timeout_seconds=1)

        assert await guard.invoke("hello") is output

    @pytest.mark.asyncio
    async def test_tool_calls_without_text(self, mock_logger):
        """Test tool calls alone count as content."""
        output = AgentOutput(tool_calls=[ToolCall(tool_name="tasks", args=ToolArgs(action="list_tasks"))])
        guard = AgentInvocationGuard(FakeAgent(output), mock_logger)

        result = await guard.invoke("show tasks")

        assert result.text is None
        assert len(result.tool_calls) == 1

    @pytest.mark.asyncio
    async def test_dict_response_is_validated(self, mock_logger):
        """Test agents may answer with plain dicts."""
        guard = AgentInvocationGuard(
            FakeAgent({"text": "ok", "toolCalls": [{"toolName": "gmail", "args": {"action": "get_unread_count"}}]}),
            mock_logger,
        )

        result = await guard.invoke("unread?")

        assert result.tool_calls[0].tool_name == "gmail"
        assert result.tool_calls[0].args.params == {}

    @pytest.mark.asyncio
    async def test_timeout(self, mock_logger):
        """Test a slow agent is abandoned."""
        guard = AgentInvocationGuard(FakeAgent(delay=0.5), mock_logger, timeout_seconds=0.05)

        with pytest.raises(AgentInvocationError) as exc_info:
            await guard.invoke("hello")

        assert exc_info.value.message == "Failed to generate response: Agent response timed out after 0.05 seconds"
        assert exc_info.value.error_code == "AGENT_TIMEOUT"

    @pytest.mark.asyncio
    async def test_none_response(self, mock_logger):
        """Test a missing answer."""
        agent = Mock()
        agent.generate = AsyncMock(return_value=None)
        guard = AgentInvocationGuard(agent, mock_logger)

        with pytest.raises(AgentInvocationError) as exc_info:
            await guard.invoke("hello")

        assert exc_info.value.error_code == "EMPTY_AGENT_RESPONSE"

    @pytest.mark.asyncio
    async def test_empty_response(self, mock_logger):
        """Test whitespace text and no tool calls is empty."""
        guard = AgentInvocationGuard(FakeAgent(AgentOutput(text="   ")), mock_logger)

        with pytest.raises(AgentInvocationError) as exc_info:
            await guard.invoke("hello")

        assert exc_info.value.message.startswith("Failed to generate response: ")

    @pytest.mark.asyncio
    async def test_agent_exception_is_wrapped(self, mock_logger):
        """Test arbitrary agent errors keep their message."""
        guard = AgentInvocationGuard(FakeAgent(error=RuntimeError("boom")), mock_logger)

        with pytest.raises(AgentInvocationError) as exc_info:
            await guard.invoke("hello")

        assert exc_info.value.message == "Failed to generate response: boom"
        assert isinstance(exc_info.value.cause, RuntimeError)
