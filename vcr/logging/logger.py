"""
Logging infrastructure for VCR.

Provides:
- Console logging with component context
- The per-repository operator action log (<root>/.log)
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

ACTION_COMPONENT = "action"

# Records logged outside a bound logger still need these for formatting
logger.configure(extra={"component": "system", "author": "", "repo": ""})

# Silent when used as a library; VCRLogger turns output on
logger.disable("vcr")


class VCRLogger:
    """
    Logger setup for the VCR command line.

    Features:
    - Console handler with component-specific context
    - Action log sinks, one per repository, filtered by component and repo
    """

    def __init__(
        self,
        level: str = "WARNING",
        format_string: Optional[str] = None,
        action_format: Optional[str] = None,
        enable_console_logging: bool = True,
        enable_action_log: bool = True,
    ):
        """
        Initialize the VCR logger.

        Args:
            level: Console log level
            format_string: Custom console format string
            action_format: Format of action log lines
            enable_console_logging: Whether to log to stderr
            enable_action_log: Whether repositories get an action log sink
        """
        self.level = level
        self.enable_action_log = enable_action_log
        self.format_string = format_string or (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> - "
            "<level>{message}</level>"
        )
        self.action_format = action_format or (
            "{time:YYYY-MM-DD HH:mm:ss} | {extra[author]} | {message}"
        )
        self._action_sinks: Dict[str, int] = {}

        # Remove default handler
        logger.remove()
        logger.enable("vcr")

        if enable_console_logging:
            logger.add(
                sys.stderr,
                format=self.format_string,
                level=level,
                colorize=True,
                filter=lambda record: record["extra"].get("component") != ACTION_COMPONENT,
            )

        self.logger = logger.bind(component="system")

    def attach_action_log(self, repo_dir: Path) -> None:
        """
        Append operator actions for one repository to its .log file.

        Args:
            repo_dir: Repository marker directory
        """
        if not self.enable_action_log:
            return
        key = str(repo_dir)
        if key in self._action_sinks:
            return
        self._action_sinks[key] = logger.add(
            repo_dir / ".log",
            format=self.action_format,
            level="INFO",
            filter=lambda record: (
                record["extra"].get("component") == ACTION_COMPONENT
                and record["extra"].get("repo") == key
            ),
        )

    def detach_action_log(self, repo_dir: Path) -> None:
        """Stop writing actions for a repository."""
        handler_id = self._action_sinks.pop(str(repo_dir), None)
        if handler_id is not None:
            logger.remove(handler_id)

    def get_logger(self, component: str) -> Any:
        """
        Get a logger bound to a specific component.

        Args:
            component: Component name (e.g., "objects", "refs", "merge")

        Returns:
            Logger instance bound to the component
        """
        return logger.bind(component=component)


def get_vcr_logger(component: str = "system") -> Any:
    """
    Get a component-specific logger.

    Every core module binds one of these at import time.

    Args:
        component: Component name

    Returns:
        Logger instance

    Example:
        >>> log = get_vcr_logger("refs")
        >>> log.debug("Moved track", track="master")
    """
    return logger.bind(component=component)


def log_action(repo_dir: Path, author: str, message: str) -> None:
    """
    Record one operator action in the repository action log.

    Args:
        repo_dir: Repository marker directory
        author: Operator the action is attributed to
        message: Action line, e.g. ">>> commit first"
    """
    logger.bind(component=ACTION_COMPONENT, repo=str(repo_dir), author=author).info(message)


# Global logger instance
_vcr_logger: Optional[VCRLogger] = None


def initialize_logging(level: str = "WARNING", **kwargs: Any) -> VCRLogger:
    """
    Initialize the VCR logging system.

    The CLI calls this once per invocation, before opening a repository.

    Args:
        level: Console log level
        **kwargs: Additional configuration for VCRLogger

    Returns:
        Configured VCRLogger instance
    """
    global _vcr_logger
    _vcr_logger = VCRLogger(level=level, **kwargs)
    return _vcr_logger


def get_logger_instance() -> Optional[VCRLogger]:
    """Get the global logger instance."""
    return _vcr_logger
