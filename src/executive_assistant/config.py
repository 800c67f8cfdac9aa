"""
Configuration management for the executive assistant.
"""

import os
import yaml
from typing import Any, Optional, List
from pathlib import Path
from pydantic import BaseModel
from dotenv import load_dotenv

from .exceptions import ConfigurationError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LLMConfig(BaseModel):
    """AWS Bedrock model configuration."""
    region: str = "us-east-1"
    model: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"
    temperature: float = 0.1
    max_tokens: int = 1000
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


class AgentConfig(BaseModel):
    """Agent identity and invocation limits."""
    name: str = "ExecuMate"
    description: str = "Executive AI Assistant for calendar, email and task management"
    timeout_seconds: float = 30.0
    fallback_message: str = "I apologize, but I was unable to process your request. Please try again."
    error_message: str = "I encountered an error while processing your request. Please try again or rephrase your question."


class GoogleConfig(BaseModel):
    """OAuth credentials shared by the Calendar and Gmail backends."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    refresh_token: str = ""
    token_uri: str = "https://oauth2.googleapis.com/token"
    calendar_id: str = "primary"
    scopes: List[str] = [
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/gmail.send",
        "https://www.googleapis.com/auth/gmail.readonly",
        "https://www.googleapis.com/auth/gmail.compose",
    ]

    def has_credentials(self) -> bool:
        """True when every value needed to refresh an access token is set."""
        return all([self.client_id, self.client_secret, self.refresh_token])


class ServiceToolConfig(BaseModel):
    """Calendar or Gmail tool configuration."""
    enabled: bool = True
    max_results: int = 10


class TaskToolConfig(BaseModel):
    """Task tool configuration."""
    enabled: bool = True
    strict_batch_success: bool = False


class ToolsConfig(BaseModel):
    """Configuration for all tools."""
    calendar: ServiceToolConfig = ServiceToolConfig()
    gmail: ServiceToolConfig = ServiceToolConfig()
    tasks: TaskToolConfig = TaskToolConfig()


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = "logs/executive_assistant.log"


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    version: str = "1.0.0"


class Config(BaseModel):
    """Main configuration class."""
    llm: LLMConfig = LLMConfig()
    agent: AgentConfig = AgentConfig()
    google: GoogleConfig = GoogleConfig()
    tools: ToolsConfig = ToolsConfig()
    logging: LoggingConfig = LoggingConfig()
    server: ServerConfig = ServerConfig()


class ConfigManager:
    """Configuration manager for the executive assistant."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager."""
        self.config_path = config_path or "config.yaml"
        load_dotenv()  # Load environment variables

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        try:
            config_file = Path(self.config_path)
            if not config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(config_file, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file) or {}

            # Substitute environment variables
            config_data = self._substitute_env_vars(config_data)

            return Config(**config_data)

        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}", "CONFIG_LOAD_ERROR")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute environment variables in configuration."""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
            env_var = data[2:-1]
            # Handle default values like ${AWS_REGION:-us-east-1}
            if ":-" in env_var:
                var_name, default_value = env_var.split(":-", 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(env_var, "")
        else:
            return data

    def validate_config(self, config: Config) -> List[str]:
        """Validate configuration values and return non-fatal warnings."""
        warnings = []

        if not config.llm.region or config.llm.region.strip() == "":
            raise ConfigurationError("AWS region is required. Please set AWS_REGION environment variable or use default 'us-east-1'.")

        # Validate temperature and token limits
        if config.llm.temperature < 0 or config.llm.temperature > 1:
            raise ConfigurationError("Temperature must be between 0 and 1")

        if config.llm.max_tokens < 1:
            raise ConfigurationError("Max tokens must be positive")

        if config.agent.timeout_seconds <= 0:
            raise ConfigurationError("Agent timeout must be positive")

        if config.tools.calendar.max_results < 1 or config.tools.gmail.max_results < 1:
            raise ConfigurationError("Tool max_results must be positive")

        if config.logging.level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {config.logging.level}")

        # Calendar and Gmail report per-call failures without credentials; tasks still work
        if (config.tools.calendar.enabled or config.tools.gmail.enabled) and not config.google.has_credentials():
            warnings.append(
                "Google credentials are incomplete. Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and "
                "GOOGLE_REFRESH_TOKEN to enable calendar and email actions."
            )

        # Create necessary directories
        logs_dir = Path(config.logging.file).parent
        logs_dir.mkdir(parents=True, exist_ok=True)

        return warnings
