"""Typed operation requests consumed by the command builder."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .resources import MountType, Protocol


class PortSpec(BaseModel):
    """Published port: ``[host_ip:]host:container[/protocol]``."""

    host: int = Field(..., ge=0, le=65535)
    container: int = Field(..., ge=1, le=65535)
    host_ip: Optional[str] = None
    protocol: Protocol = Protocol.TCP


class VolumeSpec(BaseModel):
    """Volume binding: ``source:target[:ro]``."""

    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    readonly: bool = False


class MountSpec(BaseModel):
    """Mount: ``type=T,source=S,target=D[,readonly]``."""

    type: MountType
    source: str
    target: str = Field(..., min_length=1)
    readonly: bool = False


class RunContainerOptions(BaseModel):
    image: str = Field(..., min_length=1)
    name: Optional[str] = None
    detach: bool = False
    interactive: bool = False
    tty: bool = False
    remove: bool = False
    env: Optional[Dict[str, str]] = None
    env_file: Optional[str] = None
    ports: Optional[List[PortSpec]] = None
    volumes: Optional[List[VolumeSpec]] = None
    mounts: Optional[List[MountSpec]] = None
    network: Optional[str] = None
    workdir: Optional[str] = None
    user: Optional[str] = None
    cpus: Optional[float] = Field(default=None, gt=0)
    memory: Optional[str] = None
    platform: Optional[str] = None
    entrypoint: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    dns: Optional[List[str]] = None
    dns_search: Optional[List[str]] = None
    rosetta: bool = False
    ssh: bool = False
    cmd: Optional[List[str]] = None


class BuildImageOptions(BaseModel):
    context: str = Field(..., min_length=1)
    dockerfile: Optional[str] = None
    tag: Optional[str] = None
    tags: Optional[List[str]] = None
    build_args: Optional[Dict[str, str]] = None
    target: Optional[str] = None
    platform: Optional[str] = None
    no_cache: bool = False
    labels: Optional[Dict[str, str]] = None


class PullImageOptions(BaseModel):
    image: str = Field(..., min_length=1)
    platform: Optional[str] = None


class CreateVolumeOptions(BaseModel):
    name: str = Field(..., min_length=1)
    driver: Optional[str] = None
    labels: Optional[Dict[str, str]] = None


class CreateNetworkOptions(BaseModel):
    name: str = Field(..., min_length=1)
    driver: Optional[str] = None
    subnet: Optional[str] = None
    gateway: Optional[str] = None
    internal: bool = False
    labels: Optional[Dict[str, str]] = None


class ConfigUpdate(BaseModel):
    """Partial update of the live adapter configuration."""

    binary_path: Optional[str] = Field(None, min_length=1)
    poll_interval_ms: Optional[int] = Field(None, ge=0)
    show_stopped: Optional[bool] = None
    default_shell: Optional[str] = None
    confirm_before_delete: Optional[bool] = None
