"""Simple YAML configuration loader for notestream."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "notestream.yaml"


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Look for notestream.yaml in start_dir and its parents."""
    current = Path(start_dir or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        candidate = directory / DEFAULT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class NoteStreamConfig:
    """notestream configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for notestream.yaml
                        in current directory and parent directories and falls back
                        to built-in defaults when none is found.
        """
        if config_path is None:
            self.config_file = find_config_file()
            if self.config_file is None:
                logger.info("No configuration file found, using defaults")
                self.config: Dict[str, Any] = {}
                return
        else:
            self.config_file = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteStreamConfig":
        """Build a configuration from an in-memory dictionary."""
        instance = cls.__new__(cls)
        instance.config_file = None
        instance.config = data
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if config is None:
            logger.warning(f"Configuration file is empty: {self.config_file}")
            return {}
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve Google credentials path
        if 'google_cloud' in config and 'credentials_path' in config['google_cloud']:
            creds_path = config['google_cloud']['credentials_path']
            if creds_path and not os.path.isabs(creds_path):
                config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if log_path and not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'segmentation.min_content_words').

        Args:
            key_path: Dot-separated key path (e.g., 'capture.chunk_duration_seconds')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'transcription.backend')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in notestream.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_openai_api_key(self) -> str:
        """Get the OpenAI API key from config or the OPENAI_API_KEY environment variable."""
        api_key = self.get('openai.api_key') or os.environ.get('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OpenAI API key not configured (openai.api_key or OPENAI_API_KEY)")
        return api_key
