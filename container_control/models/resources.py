"""Domain models for containers, images, volumes and networks.

Instances are produced by the response normalizer from CLI output and are
immutable once built. Optional collections stay ``None`` when the engine
did not report them.
"""

from abc import abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(str, Enum):
    """The four manageable resource categories."""

    CONTAINER = "container"
    IMAGE = "image"
    VOLUME = "volume"
    NETWORK = "network"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


class ContainerStatus(str, Enum):
    """Normalized container state."""

    RUNNING = "running"
    STOPPED = "stopped"
    CREATED = "created"
    PAUSED = "paused"
    EXITED = "exited"
    UNKNOWN = "unknown"


class MountType(str, Enum):
    BIND = "bind"
    VOLUME = "volume"
    TMPFS = "tmpfs"


class Protocol(str, Enum):
    TCP = "tcp"
    UDP = "udp"


class _Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    @abstractmethod
    def identity_keys(self) -> Tuple[str, ...]:
        """Keys a consumer may use to look this resource up."""


class PortMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_ip: Optional[str] = None
    host_port: int
    container_port: int
    protocol: Protocol = Protocol.TCP


class Mount(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: MountType
    source: str
    target: str
    readonly: bool = False


class Container(_Resource):
    """Summary entry from ``container list``."""

    id: str
    name: str
    image: str
    status: ContainerStatus = ContainerStatus.UNKNOWN
    created: str = ""
    ports: Optional[List[PortMapping]] = None
    mounts: Optional[List[Mount]] = None
    labels: Optional[Dict[str, str]] = None

    @property
    def identity_keys(self) -> Tuple[str, ...]:
        return (self.id, self.name)

    @property
    def is_running(self) -> bool:
        return self.status == ContainerStatus.RUNNING


class Image(_Resource):
    """Summary entry from ``container image list``."""

    id: str
    repository: str
    tag: str = "latest"
    digest: Optional[str] = None
    size: str = "0 B"
    size_bytes: int = 0
    created: str = ""
    labels: Optional[Dict[str, str]] = None

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"

    @property
    def identity_keys(self) -> Tuple[str, ...]:
        if self.digest and self.digest != self.id:
            return (self.id, self.reference, self.digest)
        return (self.id, self.reference)


class Volume(_Resource):
    name: str
    driver: Optional[str] = None
    mountpoint: Optional[str] = None
    created: Optional[str] = None
    scope: Optional[str] = None
    labels: Optional[Dict[str, str]] = None

    @property
    def display_driver(self) -> str:
        return self.driver or "local"

    @property
    def identity_keys(self) -> Tuple[str, ...]:
        return (self.name,)


class IpamBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    subnet: Optional[str] = None
    gateway: Optional[str] = None


class IpamConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    driver: Optional[str] = None
    config: List[IpamBlock] = Field(default_factory=list)


class Network(_Resource):
    id: str
    name: str
    driver: Optional[str] = None
    scope: Optional[str] = None
    internal: Optional[bool] = None
    ipam: Optional[IpamConfig] = None
    labels: Optional[Dict[str, str]] = None

    @property
    def identity_keys(self) -> Tuple[str, ...]:
        return (self.id, self.name)
