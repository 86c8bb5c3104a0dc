"""Execution gateway limits."""

from pydantic import Field
from pydantic_settings import BaseSettings


class GatewayConfig(BaseSettings):
    """Timeouts and output bounds for CLI invocations."""

    command_timeout_seconds: float = Field(default=60, gt=0, le=3600)
    long_running_timeout_seconds: float = Field(default=600, gt=0, le=7200)
    max_output_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)

    class Config:
        env_prefix = ""
        extra = "ignore"
