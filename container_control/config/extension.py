"""Process-wide adapter configuration."""

from pydantic import BaseModel, ConfigDict, Field


class ExtensionConfig(BaseModel):
    """Settings consumed by the gateway, caches and host surfaces.

    Frozen: a change produces a new instance, so an in-flight operation
    keeps seeing the value it started with.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    binary_path: str = Field(default="container", min_length=1)
    poll_interval_ms: int = Field(default=5000, ge=0)
    show_stopped: bool = True
    default_shell: str = "/bin/sh"
    confirm_before_delete: bool = True

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def polling_enabled(self) -> bool:
        return self.poll_interval_ms > 0
