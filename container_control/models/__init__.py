"""Data models for container control."""

from .resources import (
    ResourceKind,
    ContainerStatus,
    MountType,
    Protocol,
    PortMapping,
    Mount,
    Container,
    Image,
    Volume,
    IpamBlock,
    IpamConfig,
    Network,
)
from .options import (
    PortSpec,
    VolumeSpec,
    MountSpec,
    RunContainerOptions,
    BuildImageOptions,
    PullImageOptions,
    CreateVolumeOptions,
    CreateNetworkOptions,
    ConfigUpdate,
)
from .results import OperationResult, ErrorKind
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    ContainerControlException,
    ValidationError,
    ConfirmationRequiredError,
    ResourceNotFoundError,
    OperationFailedError,
    ServiceUnavailableError,
)

__all__ = [
    # Resource models
    "ResourceKind",
    "ContainerStatus",
    "MountType",
    "Protocol",
    "PortMapping",
    "Mount",
    "Container",
    "Image",
    "Volume",
    "IpamBlock",
    "IpamConfig",
    "Network",
    # Operation requests
    "PortSpec",
    "VolumeSpec",
    "MountSpec",
    "RunContainerOptions",
    "BuildImageOptions",
    "PullImageOptions",
    "CreateVolumeOptions",
    "CreateNetworkOptions",
    "ConfigUpdate",
    # Results
    "OperationResult",
    "ErrorKind",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "ContainerControlException",
    "ValidationError",
    "ConfirmationRequiredError",
    "ResourceNotFoundError",
    "OperationFailedError",
    "ServiceUnavailableError",
]
