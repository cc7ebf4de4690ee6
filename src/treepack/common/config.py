"""Configuration loader with multi-source support."""

import logging
import os
import toml
from pathlib import Path
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import platformdirs
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class ConfigLoader(Generic[T]):
    """Loads configuration from multiple sources with priority.
    
    Sources, lowest priority first:
    
    1. Model defaults
    2. User config (``<user config dir>/<app_name>/config.toml``)
    3. Explicit config file passed to :meth:`load`
    4. Environment variables ``<APP_NAME>_<SECTION>_<KEY>``
    """

    def __init__(self, config_class: Type[T], app_name: str = "treepack") -> None:
        self.app_name = app_name
        self.config_class = config_class
        self._config: Optional[T] = None

    def load(self, config_path: Optional[Path] = None) -> T:
        """Load and validate configuration from all sources.
        
        Args:
            config_path: Optional explicit TOML file, e.g. from ``--config``
            
        Returns:
            Validated configuration object
            
        Raises:
            ConfigurationError: If a file cannot be parsed or validation fails
        """
        config_dict: Dict[str, Any] = {}

        user_config = self._load_user_config()
        if user_config:
            config_dict = self._deep_merge(config_dict, user_config)

        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {config_path}", path=str(config_path)
                )
            config_dict = self._deep_merge(config_dict, self._read_toml(config_path))

        config_dict = self._apply_env_overrides(config_dict)

        try:
            self._config = self.config_class(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        return self._config

    def user_config_path(self) -> Path:
        """Location of the per-user config file."""
        user_config_dir = platformdirs.user_config_dir(appname=self.app_name, appauthor=False)
        return Path(user_config_dir) / "config.toml"

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        """Load user-specific configuration."""
        user_config_path = self.user_config_path()
        if user_config_path.exists():
            logger.debug(f"Loading user config from {user_config_path}")
            return self._read_toml(user_config_path)

        logger.debug(f"User config not found at {user_config_path}")
        return None

    def _read_toml(self, path: Path) -> Dict[str, Any]:
        try:
            return toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(
                f"Cannot read config file {path}: {e}", path=str(path)
            ) from e

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Override config with environment variables.
        
        ``TREEPACK_ARCHIVE_CHUNK_SIZE=1048576`` sets ``archive.chunk_size``.
        Values stay strings; pydantic coerces them to the field types.
        """
        prefix = f"{self.app_name.upper().replace('-', '_')}_"
        result = self._deep_merge({}, config)

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            section, _, key = env_key[len(prefix):].lower().partition("_")
            if not section or not key:
                continue

            result.setdefault(section, {})
            if isinstance(result[section], dict):
                result[section][key] = env_value
                logger.debug(f"Config override from environment: {section}.{key}")

        return result

    @property
    def config(self) -> T:
        """Get loaded configuration."""
        if self._config is None:
            self._config = self.load()
        return self._config
