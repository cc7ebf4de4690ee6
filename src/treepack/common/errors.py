"""Base error definitions for treepack packages."""

from typing import Any, Dict


class TreepackError(Exception):
    """Base exception for all treepack errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(TreepackError):
    """Configuration file could not be read or is invalid."""
    pass
