"""
Configuration management for VCR.

This module provides centralized configuration for all system components:
- Repository layout names (marker directory, ignore file)
- Default track and author
- Logging settings
"""

import os
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


def _default_author() -> str:
    return os.getenv("VCR_AUTHOR") or os.getenv("USER") or os.getenv("USERNAME") or "unknown"


class RepositoryConfig(BaseModel):
    """Configuration for repository layout and commit defaults."""

    dir_name: str = Field(
        default=".vcr", description="Name of the repository marker directory"
    )
    ignore_file: str = Field(
        default=".vcrignore",
        description="Working-tree file listing literal paths to ignore",
    )
    default_track: str = Field(
        default="master", description="Track created and checked out by init"
    )
    author: str = Field(
        default_factory=_default_author,
        description="Author recorded on frames when no setting overrides it",
    )


class LogConfig(BaseModel):
    """Configuration for logging system."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Console logging level"
    )
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[component]}</cyan> - "
        "<level>{message}</level>",
        description="Console log message format",
    )
    action_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {extra[author]} | {message}",
        description="Format of lines in the repository action log",
    )
    enable_console_logging: bool = Field(
        default=True, description="Whether to enable console logging"
    )
    enable_action_log: bool = Field(
        default=True, description="Whether to append operator actions to <root>/.log"
    )


class Config(BaseModel):
    """Main configuration object for VCR."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            repository=RepositoryConfig(
                dir_name=os.getenv("VCR_DIR", ".vcr"),
                ignore_file=os.getenv("VCR_IGNORE_FILE", ".vcrignore"),
                default_track=os.getenv("VCR_DEFAULT_TRACK", "master"),
                author=_default_author(),
            ),
            logging=LogConfig(
                level=cast(
                    Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    os.getenv("VCR_LOG_LEVEL", "WARNING"),
                ),
                enable_action_log=os.getenv("VCR_ACTION_LOG", "1") != "0",
            ),
        )


# Global configuration instance
# This can be imported throughout the codebase
config = Config.from_env()
