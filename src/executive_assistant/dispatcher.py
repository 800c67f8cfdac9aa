"""
Tool-call dispatching for the executive assistant.
"""

import logging
from typing import Dict, Any, List
from pydantic import BaseModel

from .models import ActionResult, ToolCall
from .tools import ToolRegistry


BATCH_INHERITED_FIELDS = ("dueDate", "description")


class DispatchOutcome(BaseModel):
    """Tools used and one result per tool call, in call order."""
    tools_used: List[str] = []
    results: List[ActionResult] = []


class ToolCallDispatcher:
    """Executes the agent's tool calls one after another.

    A failing call never stops the calls after it. Every call contributes
    exactly one ActionResult, including a batch task creation that expands
    into several store writes.
    """

    def __init__(self, tool_registry: ToolRegistry, logger: logging.Logger, strict_batch_success: bool = False):
        """Initialize dispatcher."""
        self.tool_registry = tool_registry
        self.logger = logger
        self.strict_batch_success = strict_batch_success

    async def dispatch(self, tool_calls: List[ToolCall]) -> DispatchOutcome:
        """Run every tool call in order."""
        outcome = DispatchOutcome()

        for call in tool_calls:
            outcome.tools_used.append(call.tool_name)
            result = await self._execute(call)
            outcome.results.append(result)

            status = "succeeded" if result.success else f"failed: {result.error}"
            self.logger.info(f"Tool call {call.tool_name}.{call.args.action} {status}")

        return outcome

    async def _execute(self, call: ToolCall) -> ActionResult:
        if call.error:
            return ActionResult(success=False, error=call.error)

        params = call.args.params or {}
        try:
            if self._is_batch_create(call):
                return await self._create_batch(params)
            return await self.tool_registry.execute_tool(call.tool_name, call.args.action, params)
        except Exception as e:
            self.logger.error(f"Error executing tool call {call.tool_name}.{call.args.action}: {str(e)}")
            return ActionResult(success=False, error=str(e) or e.__class__.__name__)

    @staticmethod
    def _is_batch_create(call: ToolCall) -> bool:
        tasks = (call.args.params or {}).get("tasks")
        return (
            call.tool_name == "tasks"
            and call.args.action == "create_task"
            and isinstance(tasks, list)
            and len(tasks) > 0
        )

    @staticmethod
    def _batch_item(item: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        """Task parameters for one batch item, falling back to the batch-level values."""
        if isinstance(item, str):
            item = {"title": item}
        elif not isinstance(item, dict):
            item = {}

        merged = dict(item)
        for key in BATCH_INHERITED_FIELDS:
            if not merged.get(key) and params.get(key):
                merged[key] = params[key]
        merged["priority"] = merged.get("priority") or params.get("priority") or "medium"
        return merged

    async def _create_batch(self, params: Dict[str, Any]) -> ActionResult:
        """Create one task per item of params['tasks']."""
        items = params["tasks"]
        created: List[Any] = []
        lines: List[str] = []

        for index, item in enumerate(items):
            result = await self.tool_registry.execute_tool("tasks", "create_task", self._batch_item(item, params))
            if result.success:
                created.append(result.data)
                lines.append(f"- {result.message}")
            else:
                self.logger.warning(f"Batch task {index + 1}/{len(items)} not created: {result.error}")

        self.logger.info(f"Batch task creation: {len(created)} of {len(items)} created")

        if self.strict_batch_success and not created:
            return ActionResult(success=False, error=f"None of the {len(items)} tasks could be created")

        return ActionResult(
            success=True,
            data=created,
            message="\n".join(["Multiple tasks created successfully"] + lines)
        )
