"""
Main executive assistant system.
Wires configuration, logging, tools and the request workflow together.
"""

import uuid
from typing import Dict, Any, Optional

from .agents import Agent, AgentInvocationGuard, ExecutiveAgent
from .composer import ResponseComposer
from .config import Config, ConfigManager
from .dispatcher import ToolCallDispatcher
from .google_services import GmailService, GoogleCalendarService
from .logging_manager import LoggingManager
from .normalization import MessageNormalizer
from .orchestrator import WorkflowOrchestrator
from .task_store import TaskStore
from .tools import ToolRegistry


def build_message_request(text: str, user_id: Optional[str] = None, channel_id: Optional[str] = None,
                          org_id: Optional[str] = None) -> Dict[str, Any]:
    """Wrap plain text in a message/send envelope."""
    metadata = {
        "telex_user_id": user_id,
        "telex_channel_id": channel_id,
        "org_id": org_id,
    }
    return {
        "jsonrpc": "2.0",
        "id": str(uuid.uuid4()),
        "method": "message/send",
        "params": {
            "message": {
                "kind": "message",
                "role": "user",
                "parts": [{"kind": "text", "text": text}],
                "metadata": {key: value for key, value in metadata.items() if value is not None},
                "messageId": str(uuid.uuid4()),
            },
            "configuration": {
                "acceptedOutputModes": ["text/plain"],
                "historyLength": 0,
                "blocking": True,
            },
        },
    }


class ExecutiveAssistantSystem:
    """Main entry point for processing assistant requests."""

    def __init__(self, config_path: Optional[str] = None, config: Optional[Config] = None,
                 agent: Optional[Agent] = None, task_store: Optional[TaskStore] = None,
                 calendar_service: Optional[GoogleCalendarService] = None,
                 gmail_service: Optional[GmailService] = None, console_logging: bool = True):
        """Initialize the executive assistant system."""
        self.config_manager = ConfigManager(config_path)
        self.config = config if config is not None else self.config_manager.load_config()
        warnings = self.config_manager.validate_config(self.config)

        # Setup logging
        self.logging_manager = LoggingManager(self.config, console=console_logging)
        self.logger = self.logging_manager.get_logger("ExecutiveAssistant")
        for warning in warnings:
            self.logger.warning(warning)

        # Initialize components; one task store lives as long as the system
        self.task_store = task_store if task_store is not None else TaskStore(self.logger)
        self.tool_registry = ToolRegistry(
            self.config, self.logger, self.task_store, calendar_service, gmail_service
        )
        self.agent = agent or ExecutiveAgent(self.config, self.tool_registry, self.logger)

        self.normalizer = MessageNormalizer(self.logger)
        self.guard = AgentInvocationGuard(self.agent, self.logger, self.config.agent.timeout_seconds)
        self.dispatcher = ToolCallDispatcher(
            self.tool_registry, self.logger, self.config.tools.tasks.strict_batch_success
        )
        self.composer = ResponseComposer(
            self.logger, self.config.agent.fallback_message, self.config.agent.error_message
        )

        self.orchestrator = WorkflowOrchestrator(
            self.normalizer, self.guard, self.dispatcher, self.composer, self.logger
        )

        self.logger.info("Executive assistant system initialized successfully")

    async def process_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Process an inbound request payload; always returns a well-formed response."""
        try:
            response = await self.orchestrator.process_request(payload)
            return response.to_dict()

        except Exception as e:
            self.logger.error(f"Error processing agent request: {str(e)}")
            return self.composer.compose_error(str(e) or e.__class__.__name__).to_dict()

    async def process_text(self, text: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Process plain text as if it arrived in a message/send request."""
        return await self.process_request(build_message_request(text, user_id=user_id))

    def get_system_info(self) -> Dict[str, Any]:
        """Get system information."""
        return {
            "agent": {
                "name": self.config.agent.name,
                "description": self.config.agent.description,
                "timeout_seconds": self.config.agent.timeout_seconds
            },
            "tools": {
                name: self.tool_registry.get_tool_info(name) for name in self.tool_registry.list_tools()
            },
            "tasks_stored": len(self.task_store),
            "logging": self.logging_manager.get_system_info(),
            "google_credentials": self.config.google.has_credentials(),
            "config": {
                "model": self.config.llm.model,
                "temperature": self.config.llm.temperature,
                "max_tokens": self.config.llm.max_tokens,
                "region": self.config.llm.region
            }
        }
