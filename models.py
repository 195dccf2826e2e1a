"""Settings and measurement models for context iterator chains."""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


_LEVEL_NAMES = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_LOGGER_NAMES = ("context_iterators", "utils")


class TraceSettings(BaseModel):
    """Process-wide logging/tracing knobs for context chains."""
    log_level: Optional[str] = Field(
        None,
        description="Level applied to the context iterator loggers; None leaves them alone"
    )
    trace_pulls: bool = Field(
        False,
        description="Log every accepted/rejected pull and bulk-count at DEBUG"
    )
    configure_logging: bool = Field(
        False,
        description="Call logging.basicConfig when settings are installed"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Accept logging level names, case-insensitively."""
        if v is None:
            return v
        name = str(v).strip().upper()
        if name not in _LEVEL_NAMES:
            raise ValueError(f"Unknown log level: {v}")
        return name


class PerformanceReport(BaseModel):
    """Timing and memory figures for one measured operation."""
    operation: str = Field(..., description="Name given to the measured call")
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    memory_usage_mb: float = Field(..., description="Peak traced allocation in MB", ge=0)
    rss_mb: Optional[float] = Field(None, description="Process resident set size after the call")
    success: bool = Field(True, description="Whether the call returned normally")
    result_size: Optional[int] = Field(None, description="len() of the result, if sized", ge=0)
    error: Optional[str] = Field(None, description="Error message when the call raised")
    timestamp: float = Field(..., description="Unix time the measurement finished")


class PerformanceSummary(BaseModel):
    """Aggregate over every recorded PerformanceReport."""
    total_operations: int = Field(0, ge=0)
    total_time_ms: float = Field(0.0, ge=0)
    total_memory_mb: float = Field(0.0, ge=0)
    avg_time_ms: float = Field(0.0, ge=0)
    avg_memory_mb: float = Field(0.0, ge=0)
    failed_operations: List[str] = Field(default_factory=list)


_settings = TraceSettings()


def get_settings() -> TraceSettings:
    """Return the currently installed settings."""
    return _settings


def configure(**overrides: Any) -> TraceSettings:
    """
    Validate and install new settings, starting from the current ones.

    Raises pydantic.ValidationError on bad values; the previous settings stay
    installed in that case.
    """
    global _settings
    settings = TraceSettings(**{**_settings.model_dump(), **overrides})
    if settings.configure_logging:
        logging.basicConfig(level=settings.log_level or logging.WARNING)
    if settings.log_level is not None:
        for name in _LOGGER_NAMES:
            logging.getLogger(name).setLevel(settings.log_level)
    _settings = settings
    return settings


def reset_settings() -> TraceSettings:
    """Go back to the defaults, handing logger levels back to their parents."""
    global _settings
    for name in _LOGGER_NAMES:
        logging.getLogger(name).setLevel(logging.NOTSET)
    _settings = TraceSettings()
    return _settings
