"""Service layer: CLI integration, resource caches and health reporting."""

from .cache import ResourceCache, ResourceCatalog
from .cli import CommandBuilder, CommandGateway, ContainerCli
from .health import HealthService, HealthStatus

__all__ = [
    "CommandBuilder",
    "CommandGateway",
    "ContainerCli",
    "HealthService",
    "HealthStatus",
    "ResourceCache",
    "ResourceCatalog",
]
