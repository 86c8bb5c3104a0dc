"""FastAPI application for the container control API."""

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from . import __version__
from .api import containers, health, images, networks, resources, system, volumes
from .config import settings
from .dependencies.services import get_catalog, get_config_holder, get_health_service
from .models.errors import ContainerControlException
from .utils.error_handlers import (
    container_control_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .utils.logging import setup_logging

setup_logging()
logger = structlog.get_logger()


async def _startup_catalog(app: FastAPI) -> None:
    """Start the resource caches and load the first snapshots."""
    catalog = get_catalog()
    catalog.start()
    app.state.catalog = catalog

    results = await catalog.refresh_all()
    for kind, result in results.items():
        if not result.success:
            logger.warning("Initial refresh failed", kind=kind.value, error=result.error)


async def _perform_health_checks() -> None:
    """Probe the CLI binary once at startup."""
    try:
        result = await get_health_service().check_binary()
        if result.status.value == "healthy":
            logger.info("Container CLI available", **result.details)
        else:
            logger.warning(
                "Container CLI unavailable, running in degraded mode",
                binary=result.details.get("binary"),
                error=result.error,
            )
    except Exception as e:
        logger.error("Initial health check failed", error=str(e))


def _shutdown_services(app: FastAPI) -> None:
    catalog = getattr(app.state, "catalog", None)
    if catalog is not None:
        try:
            catalog.dispose()
        except Exception as e:
            logger.error("Error disposing resource catalog", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "Starting container control API",
        version=__version__,
        binary=get_config_holder().current.binary_path,
    )
    if not settings.api.auth_enabled:
        logger.warning("API key not set - endpoints are unauthenticated")
    if settings.api_debug:
        logger.warning("Debug mode is enabled - disable in production")

    await _perform_health_checks()
    await _startup_catalog(app)

    logger.info("Container control API startup completed")

    yield

    logger.info("Shutting down container control API")
    _shutdown_services(app)
    logger.info("Container control API shutdown completed")


app = FastAPI(
    title="Container Control API",
    description="Manage containers, images, volumes and networks through the container CLI",
    version=__version__,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    debug=settings.api_debug,
    lifespan=lifespan,
)

# Register global error handlers
app.add_exception_handler(ContainerControlException, container_control_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Specific routers first; the generic resource routes match any collection path
app.include_router(health.router, tags=["health"])
app.include_router(system.router, prefix="/api/v1", tags=["system"])
app.include_router(containers.router, prefix="/api/v1", tags=["containers"])
app.include_router(images.router, prefix="/api/v1", tags=["images"])
app.include_router(volumes.router, prefix="/api/v1", tags=["volumes"])
app.include_router(networks.router, prefix="/api/v1", tags=["networks"])
app.include_router(resources.router, prefix="/api/v1", tags=["resources"])


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "container_control.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
