"""Configuration management for handler registration."""
import json
import os
import re
import threading
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import ValidationError

from command_handlers.config.schemas import AppConfig, HandlerConfig, LoggingConfig
from command_handlers.domain.exceptions import ConfigurationError
from command_handlers.infrastructure.logging.logger import get_logger

T = TypeVar("T")
logger = get_logger(__name__)

# ${NAME} or ${NAME:default}
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::([^}]*))?\}")

# Environment variables overriding configuration values, by section and key.
ENVIRONMENT_OVERRIDES = {
    "COMMAND_HANDLERS_DEFAULT_LIFETIME": ("handlers", "default_lifetime"),
    "COMMAND_HANDLERS_FACTORY_LIFETIME": ("handlers", "default_handler_factory_lifetime"),
    "COMMAND_HANDLERS_LOG_LEVEL": ("logging", "level"),
    "COMMAND_HANDLERS_LOG_DESTINATION": ("logging", "destination"),
    "COMMAND_HANDLERS_LOG_FILE": ("logging", "file_path"),
}


def expand_environment(value: Any) -> Any:
    """Expand ``${VAR}`` and ``${VAR:default}`` references in strings, recursively."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    if isinstance(value, dict):
        return {key: expand_environment(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_environment(item) for item in value]
    return value


class ConfigurationManager:
    """
    Loads configuration from an optional JSON file and the environment.

    Precedence, lowest first: schema defaults, the JSON file, environment
    variable overrides. Configuration is loaded lazily and cached.
    """

    def __init__(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        self._config_file = config_file
        self._overrides = overrides or {}
        self._lock = threading.RLock()
        self._app_config: Optional[AppConfig] = None

    @property
    def app_config(self) -> AppConfig:
        """Lazy load application configuration."""
        if self._app_config is None:
            with self._lock:
                if self._app_config is None:
                    self._app_config = self._load_app_config()
        return self._app_config

    @property
    def handlers(self) -> HandlerConfig:
        return self.app_config.handlers

    @property
    def logging(self) -> LoggingConfig:
        return self.app_config.logging

    def get_typed(self, config_type: Type[T]) -> T:
        """Get a configuration section by its schema type."""
        type_mapping = {HandlerConfig: "handlers", LoggingConfig: "logging", AppConfig: None}
        if config_type not in type_mapping:
            raise ValueError(f"Unknown configuration type: {config_type.__name__}")
        attr_name = type_mapping[config_type]
        return self.app_config if attr_name is None else getattr(self.app_config, attr_name)

    def reload(self) -> None:
        """Drop the cached configuration so it is loaded again on next access."""
        with self._lock:
            self._app_config = None

    def _load_app_config(self) -> AppConfig:
        config_data: Dict[str, Any] = {}
        if self._config_file:
            config_data = self._load_file(self._config_file)
        for section, values in self._overrides.items():
            config_data.setdefault(section, {}).update(values)
        config_data = self._apply_environment_overrides(expand_environment(config_data))
        try:
            return AppConfig.model_validate(config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", {"config_file": self._config_file}) from e

    @staticmethod
    def _load_file(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise ConfigurationError(f"Configuration file not found: {path}", {"config_file": path})
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}", {"config_file": path}) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object", {"config_file": path})
        logger.debug(f"Loaded configuration from {path}")
        return data

    @staticmethod
    def _apply_environment_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
        for variable, (section, key) in ENVIRONMENT_OVERRIDES.items():
            value = os.environ.get(variable)
            if value:
                config_data.setdefault(section, {})[key] = value
                logger.debug(f"Configuration {section}.{key} overridden by {variable}")
        return config_data
