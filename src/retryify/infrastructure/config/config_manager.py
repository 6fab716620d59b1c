"""Configuration manager for loading retry defaults from .retryify.yml"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from retryify.application.wrapper import Retryer
from retryify.domain.config import RetryOptions
from retryify.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".retryify.yml"

ENV_OVERRIDES = {
    "RETRYIFY_RETRIES": "retries",
    "RETRYIFY_INITIAL_DELAY": "initial_delay",
    "RETRYIFY_TIMEOUT": "timeout",
    "RETRYIFY_FACTOR": "factor",
}

FILE_KEYS = ("retries", "initial_delay", "timeout", "factor", "errors")


class ConfigManager:
    """Loads retry options from .retryify.yml and environment variables

    Configuration priority:
    1. Default values (defined in RetryOptions)
    2. .retryify.yml file (searched from current directory), either as a
       top-level mapping or under a ``retry`` key
    3. Environment variables (RETRYIFY_*)
    4. Explicit overrides (CLI flags, keyword arguments)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .retryify.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self.options: RetryOptions = self._load_options()

    def _find_config_file(self) -> Optional[Path]:
        """Find .retryify.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.debug(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_options(self) -> RetryOptions:
        config_dict: Dict[str, Any] = {}

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                config_dict.update(self._extract_section(file_config))
                logger.debug(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)
        return RetryOptions.build(config_dict)

    def _extract_section(self, file_config: Any) -> Dict[str, Any]:
        """Pick the retry options out of a parsed YAML document

        Raises:
            ConfigurationError: If the document has an unexpected shape
        """
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{self.config_path}: expected a mapping at the top level")
        section = file_config.get("retry", file_config)
        if not isinstance(section, dict):
            raise ConfigurationError(f"{self.config_path}: 'retry' must be a mapping")

        unknown = sorted(set(section) - set(FILE_KEYS))
        if unknown:
            raise ConfigurationError(
                f"{self.config_path}: unknown option(s): {', '.join(unknown)}"
            )
        return dict(section)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config[key] = value
        return config

    def get_options(self) -> RetryOptions:
        return self.options

    def retryer(self, **overrides: Any) -> Retryer:
        """Build a Retryer from the loaded options

        Args:
            **overrides: Option values taking precedence over file and env

        Returns:
            Retryer with the effective defaults
        """
        return Retryer(self.options.merged(overrides))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a serialisable option value by name

        Args:
            key: Option name (e.g., "retries")
            default: Default value if key not found

        Returns:
            Option value or default
        """
        return self.options.serializable().get(key, default)
