"""Pydantic models for the UDP tracker client.

Provides validated configuration models for type safety and runtime validation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class NetworkConfig(BaseModel):
    """Network configuration for tracker communication."""

    tracker_base_timeout: float = Field(
        default=15.0,
        gt=0.0,
        le=3600.0,
        description="Read deadline in seconds before any contiguous timeouts",
    )
    tracker_max_backoff_exponent: int = Field(
        default=8,
        ge=0,
        le=16,
        description="Cap on the doubling exponent applied to the read deadline",
    )
    connection_id_ttl: float = Field(
        default=60.0,
        gt=0.0,
        le=3600.0,
        description="Seconds a tracker connection token stays valid",
    )
    max_datagram_size: int = Field(
        default=65536,
        ge=512,
        le=65536,
        description="Receive buffer size in bytes",
    )
    tracker_auto_connect: bool = Field(
        default=True,
        description="Perform the connect handshake inside announce when needed",
    )
    tracker_send_url_data: bool = Field(
        default=True,
        description="Append the URL-data option (BEP 41) to announce requests",
    )
    bind_address: str | None = Field(
        default=None,
        description="Local address to bind the tracker socket to",
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Emit JSON log lines instead of Rich console output",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )
    log_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Rotate the log file after this many bytes",
    )
    log_backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Rotated log files to keep",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class Config(BaseModel):
    """Main configuration model."""

    network: NetworkConfig = Field(
        default_factory=NetworkConfig,
        description="Network configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
