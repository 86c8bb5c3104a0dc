"""Configuration management for container control.

This module provides a unified Settings class read from environment
variables (and an optional ``.env`` file), with grouped views for the
individual components.

Usage:
    from container_control.config import settings

    # Grouped settings
    settings.extension.poll_interval_ms
    settings.gateway.command_timeout_seconds

    # Flat access
    settings.container_binary
    settings.refresh_interval_ms
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .api import APIConfig
from .extension import ExtensionConfig
from .gateway import GatewayConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Container CLI
    container_binary: str = Field(
        default="container",
        min_length=1,
        description="Path or name of the container management CLI",
    )
    refresh_interval_ms: int = Field(
        default=5000,
        ge=0,
        description="Snapshot polling interval in milliseconds (0 disables polling)",
    )
    show_stopped_containers: bool = Field(default=True)
    default_shell: str = Field(default="/bin/sh")
    confirm_before_delete: bool = Field(default=True)

    # Execution limits
    command_timeout_seconds: float = Field(default=60, gt=0, le=3600)
    long_running_timeout_seconds: float = Field(
        default=600,
        gt=0,
        le=7200,
        description="Timeout for image pull and build",
    )
    max_output_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)

    # API Configuration
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8700, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    api_key: Optional[str] = Field(default=None, min_length=16)
    enable_docs: bool = Field(default=True)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)
    log_max_size_mb: int = Field(default=100, ge=1)
    log_backup_count: int = Field(default=5, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return fmt

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def extension(self) -> ExtensionConfig:
        """Access the process-wide adapter configuration."""
        return ExtensionConfig(
            binary_path=self.container_binary,
            poll_interval_ms=self.refresh_interval_ms,
            show_stopped=self.show_stopped_containers,
            default_shell=self.default_shell,
            confirm_before_delete=self.confirm_before_delete,
        )

    @property
    def gateway(self) -> GatewayConfig:
        """Access execution gateway limits."""
        return GatewayConfig(
            command_timeout_seconds=self.command_timeout_seconds,
            long_running_timeout_seconds=self.long_running_timeout_seconds,
            max_output_bytes=self.max_output_bytes,
        )

    @property
    def api(self) -> APIConfig:
        """Access API configuration group."""
        return APIConfig(
            api_host=self.api_host,
            api_port=self.api_port,
            api_debug=self.api_debug,
            api_reload=self.api_reload,
            api_key=self.api_key,
            enable_docs=self.enable_docs,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
        )


def load_extension_config() -> ExtensionConfig:
    """Re-read the environment and return a fresh ExtensionConfig."""
    return Settings().extension


# Global settings instance
settings = Settings()

from .holder import ConfigHolder  # noqa: E402

__all__ = [
    "Settings",
    "settings",
    "load_extension_config",
    # Grouped configs
    "APIConfig",
    "ExtensionConfig",
    "GatewayConfig",
    "LoggingConfig",
    "ConfigHolder",
]
