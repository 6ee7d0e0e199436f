"""Logging configuration schema."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field("INFO", description="Log level")
    destination: str = Field("stdout", description="Log destination (stdout, file, both)")
    format: str = Field("console", description="Rendering of log lines (console, json)")
    file_path: Optional[str] = Field(None, description="Log file path, required for file output")
    max_size_mb: int = Field(10, description="Maximum log file size in MB before rotation")
    backup_count: int = Field(5, description="Number of rotated log files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        """Validate log destination."""
        if v not in ("stdout", "file", "both"):
            raise ValueError("Log destination must be one of stdout, file, both")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError("Log format must be console or json")
        return v

    @property
    def writes_to_file(self) -> bool:
        return self.destination in ("file", "both")
