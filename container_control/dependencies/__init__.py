"""Dependencies package for the container control API."""

from .auth import verify_api_key
from .services import (
    CatalogDep,
    ConfigHolderDep,
    ContainerCliDep,
    HealthServiceDep,
    get_catalog,
    get_config_holder,
    get_container_cli,
    get_gateway,
    get_health_service,
)

__all__ = [
    "verify_api_key",
    "get_config_holder",
    "get_gateway",
    "get_container_cli",
    "get_catalog",
    "get_health_service",
    "ConfigHolderDep",
    "ContainerCliDep",
    "CatalogDep",
    "HealthServiceDep",
]
