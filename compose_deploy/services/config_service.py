"""Configuration management service"""

import os
from pathlib import Path
from typing import Optional, Any
import yaml

from ..api.exceptions import ConfigError
from ..models.config import Settings
from ..constants import PROJECT_CONFIG_FILE, ENV_CONFIG_PATH


class ConfigService:
    """Service for resolving runtime settings

    Settings are layered: defaults, then the project configuration file,
    then environment variables, then explicit overrides.
    """

    def __init__(self, project_root: Optional[Path] = None):
        """Initialize config service

        Args:
            project_root: Directory holding the project configuration file
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        env_path = os.environ.get(ENV_CONFIG_PATH)
        self.config_path = Path(env_path) if env_path else self.project_root / PROJECT_CONFIG_FILE

    def load_file(self) -> Settings:
        """Load settings from the configuration file, if present

        Returns:
            Settings from the file, or defaults when there is no file
        """
        if not self.config_path.exists():
            return Settings()

        with open(self.config_path, 'r') as f:
            content = f.read()

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration file {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {self.config_path} must be a mapping")

        try:
            return Settings.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration file {self.config_path}: {e}")

    def load(self, **overrides: Any) -> Settings:
        """Resolve settings from all sources

        Args:
            **overrides: Explicit values (None values are ignored)

        Returns:
            Resolved settings
        """
        settings = self.load_file()
        try:
            settings.apply_env()
            settings.update(**overrides)
        except ValueError as e:
            raise ConfigError(str(e))
        return settings
