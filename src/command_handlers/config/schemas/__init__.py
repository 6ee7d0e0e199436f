"""Configuration schemas package."""

from pydantic import BaseModel, Field

from .handler_schema import HandlerConfig
from .logging_schema import LoggingConfig


class AppConfig(BaseModel):
    """Top level configuration document."""

    handlers: HandlerConfig = Field(default_factory=HandlerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


__all__ = ["AppConfig", "HandlerConfig", "LoggingConfig"]
