"""
Logging setup for the executive assistant.

Every component logs through a child of the ``ExecutiveAssistant`` logger, so
handlers are attached once, to that root, and children inherit them.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List

from .config import Config


ROOT_LOGGER = "ExecutiveAssistant"
CONSOLE_FORMAT = "%(name)s - %(levelname)s - %(message)s"
MANAGED_HANDLER = "execumate"

# Client libraries that log every HTTP round trip at INFO
NOISY_LOGGERS = ("googleapiclient.discovery_cache", "googleapiclient.discovery", "botocore", "httpx")


class LoggingManager:
    """Configures the application logger tree from the logging config section."""

    def __init__(self, config: Config, console: bool = True):
        """Attach file and optional console handlers to the application root logger."""
        self.config = config
        self.console = console
        self.root = logging.getLogger(ROOT_LOGGER)
        self._configure_root()

    def _configure_root(self) -> None:
        level = self._level(self.config.logging.level)
        self.root.setLevel(level)
        self.root.propagate = False

        # A second system in the same process replaces our handlers instead of stacking them
        for handler in self.managed_handlers():
            self.root.removeHandler(handler)
            handler.close()

        log_file = Path(self.config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(self.config.logging.format))
        self._add(file_handler)

        # Off for the interactive chat so records don't interleave with the Rich UI
        if self.console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(max(level, logging.INFO))
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            self._add(console_handler)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def _add(self, handler: logging.Handler) -> None:
        handler.set_name(MANAGED_HANDLER)
        self.root.addHandler(handler)

    def managed_handlers(self) -> List[logging.Handler]:
        """Handlers attached by a LoggingManager, leaving out any added by others."""
        return [h for h in self.root.handlers if h.get_name() == MANAGED_HANDLER]

    @staticmethod
    def _level(name: str) -> int:
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
        return level

    def get_logger(self, name: str = ROOT_LOGGER) -> logging.Logger:
        """Logger for a component; names outside the tree are nested under it."""
        if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
            name = f"{ROOT_LOGGER}.{name}"
        return logging.getLogger(name)

    def set_level(self, level: str) -> None:
        """Change the level of the logger tree and its file handler at runtime."""
        log_level = self._level(level)
        self.root.setLevel(log_level)
        for handler in self.managed_handlers():
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(log_level)

    def handler_files(self) -> List[str]:
        return [h.baseFilename for h in self.managed_handlers() if isinstance(h, logging.FileHandler)]

    def get_system_info(self) -> Dict[str, Any]:
        """Get logging system information."""
        return {
            "log_level": logging.getLevelName(self.root.level),
            "log_files": self.handler_files(),
            "console": self.console,
        }
