"""Health check and monitoring endpoints."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import settings
from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, HealthServiceDep
from ..services.health import HealthStatus

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check():
    """Liveness check that doesn't require authentication."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "container-control",
    }


@router.get("/health/detailed", summary="Detailed health check")
async def detailed_health_check(
    health_service: HealthServiceDep,
    _: str = Depends(verify_api_key),
):
    """Probe the CLI binary and report cache state."""
    try:
        results = await health_service.check_all()
        overall_status = health_service.get_overall_status(results)

        response_data = {
            "status": overall_status.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {name: result.to_dict() for name, result in results.items()},
        }

        if overall_status == HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=response_data)
        if overall_status == HealthStatus.DEGRADED:
            return JSONResponse(
                status_code=200,
                content=response_data,
                headers={"X-Health-Status": "degraded"},
            )
        return JSONResponse(status_code=200, content=response_data)

    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": "Health check system failure",
                "details": str(e) if settings.api_debug else "Internal error",
            },
        )


@router.get("/health/binary", summary="Container CLI availability")
async def binary_health_check(
    health_service: HealthServiceDep,
    _: str = Depends(verify_api_key),
):
    """Run the version probe against the configured binary."""
    result = await health_service.check_binary()
    status_code = 503 if result.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=result.to_dict())


@router.get("/health/caches", summary="Resource cache state")
async def cache_health_check(catalog: CatalogDep, _: str = Depends(verify_api_key)):
    return catalog.stats()
