"""HTTP API configuration."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API server settings."""

    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8700, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    api_key: Optional[str] = Field(default=None)
    enable_docs: bool = Field(default=True)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)

    class Config:
        env_prefix = ""
        extra = "ignore"
