"""
Key-value settings providers.

The repository engine never reads configuration files itself; it is handed a
provider with a ``get(key, default)`` method. Keys are dotted paths into the
TOML document, e.g. ``user.name``.
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from loguru import logger


class SettingsProvider(Protocol):
    """Anything that can look up a dotted settings key."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


class DictSettings:
    """In-memory settings, used by tests and as an empty default."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values = values or {}

    def get(self, key: str, default: Any = None) -> Any:
        return _lookup(self.values, key, default)


class TomlSettings:
    """
    Settings read from a TOML file.

    The file is parsed on every lookup so edits made between two commands in
    the same process are picked up. A missing or empty file yields defaults.
    """

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Dict[str, Any]:
        """Parse the settings file."""
        if not self.path.exists():
            return {}
        with open(self.path, "rb") as f:
            try:
                return tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
                return {}

    def get(self, key: str, default: Any = None) -> Any:
        return _lookup(self.load(), key, default)


def _lookup(values: Dict[str, Any], key: str, default: Any) -> Any:
    node: Any = values
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node
