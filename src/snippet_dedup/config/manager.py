import os
import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ConfigurationError


CONFIG_ENV_VAR = "SNIPPET_DEDUP_CONFIG"


class Config:
    """Configuration manager for the duplicate detection engine with JSON-based configuration and validation."""

    def __init__(self, config_path: str = None, overrides: dict = None, setup_logging: bool = True):
        # Set up paths relative to project root
        self.project_root = Path(__file__).parent.parent.parent.parent

        # Explicit path, then environment, then project config.json
        if config_path:
            self.config_path = config_path
        elif os.environ.get(CONFIG_ENV_VAR):
            self.config_path = os.environ[CONFIG_ENV_VAR]
        else:
            self.config_path = str(self.project_root / "config.json")

        self._config = self._merge_configs(self._get_default_config(), self._load_config())
        if overrides:
            self._config = self._merge_configs(self._config, overrides)

        self._validate()
        if setup_logging:
            self._setup_logging()

    def _load_config(self) -> dict:
        """Load configuration from JSON file, empty when the file is absent or unreadable"""
        config_file = Path(self.config_path)
        if not config_file.exists():
            logging.debug(f"No configuration file at {self.config_path}, using defaults")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config = json.load(f)
            logging.info(f"Configuration loaded from {self.config_path}")
            return config
        except (OSError, json.JSONDecodeError) as e:
            logging.error(f"Failed to load configuration: {e}")
            return {}

    def _get_default_config(self) -> dict:
        """Fallback default configuration"""
        return {
            "deduplication": {
                "similarity_threshold": 0.85,
                "min_records": 2
            },
            "resolution": {
                "refresh_after_resolution": True
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "file": None
            }
        }

    def _validate(self):
        """Reject values the engine cannot run with"""
        threshold = self.get('deduplication', 'similarity_threshold')
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(
                f"deduplication.similarity_threshold must be a number between 0 and 1, got {threshold!r}",
                {'key': 'deduplication.similarity_threshold', 'value': threshold}
            )

        min_records = self.get('deduplication', 'min_records')
        if isinstance(min_records, bool) or not isinstance(min_records, int) or min_records < 0:
            raise ConfigurationError(
                f"deduplication.min_records must be a non-negative integer, got {min_records!r}",
                {'key': 'deduplication.min_records', 'value': min_records}
            )

        level = self.get('logging', 'level', default='INFO')
        if not isinstance(getattr(logging, str(level).upper(), None), int):
            raise ConfigurationError(f"Unknown logging level: {level}", {'key': 'logging.level', 'value': level})

    def _setup_logging(self):
        """Setup logging based on configuration"""
        log_config = self.get_logging_config()
        handlers = [logging.StreamHandler()]

        log_file: Optional[str] = log_config.get('file')
        if log_file:
            # Ensure log directory exists
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(
            level=getattr(logging, str(log_config.get('level', 'INFO')).upper()),
            format=log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            handlers=handlers
        )

    def _merge_configs(self, base: dict, overlay: dict) -> dict:
        """Deep merge two configuration dictionaries"""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, *keys, default=None) -> Any:
        """Get nested configuration value using dot notation"""
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_deduplication_config(self) -> dict:
        """Get deduplication configuration"""
        return self.get('deduplication', default={})

    def get_resolution_config(self) -> dict:
        """Get resolution configuration"""
        return self.get('resolution', default={})

    def get_logging_config(self) -> dict:
        """Get logging configuration"""
        return self.get('logging', default={})
