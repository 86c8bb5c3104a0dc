"""Service dependency injection for the container control API."""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends

from ..config import settings
from ..config.holder import ConfigHolder
from ..services.cache.catalog import ResourceCatalog
from ..services.cli.arguments import CommandBuilder
from ..services.cli.client import ContainerCli
from ..services.cli.gateway import CommandGateway
from ..services.health import HealthService

logger = structlog.get_logger(__name__)


@lru_cache()
def get_config_holder() -> ConfigHolder:
    """Get the process-wide configuration holder."""
    return ConfigHolder(initial=settings.extension)


@lru_cache()
def get_gateway() -> CommandGateway:
    return CommandGateway(get_config_holder(), settings.gateway)


@lru_cache()
def get_container_cli() -> ContainerCli:
    """Get the CLI client wired to the shared gateway."""
    return ContainerCli(get_gateway(), CommandBuilder(), get_config_holder())


@lru_cache()
def get_catalog() -> ResourceCatalog:
    """Get the resource catalog.

    Timers are started by the application lifespan, not here.
    """
    catalog = ResourceCatalog(get_container_cli(), get_config_holder())
    logger.info("Resource catalog created")
    return catalog


@lru_cache()
def get_health_service() -> HealthService:
    return HealthService(get_container_cli(), get_catalog(), get_config_holder())


# Type aliases for dependency injection
ConfigHolderDep = Annotated[ConfigHolder, Depends(get_config_holder)]
ContainerCliDep = Annotated[ContainerCli, Depends(get_container_cli)]
CatalogDep = Annotated[ResourceCatalog, Depends(get_catalog)]
HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]
