"""Common utilities shared by treepack packages."""

from .config import ConfigLoader
from .logging import setup_logging, setup_logging_from_config, get_logger, LogContext
from .logging_config import LoggingConfig
from .errors import TreepackError, ConfigurationError
from .path_utils import normalize_path, join_member_name, is_within

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'setup_logging_from_config',
    'get_logger',
    'LogContext',
    'TreepackError',
    'ConfigurationError',
    'normalize_path',
    'join_member_name',
    'is_within',
]
