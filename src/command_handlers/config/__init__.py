"""Configuration package."""

from .manager import ConfigurationManager, expand_environment
from .schemas import AppConfig, HandlerConfig, LoggingConfig

__all__ = ["AppConfig", "ConfigurationManager", "HandlerConfig", "LoggingConfig", "expand_environment"]
