"""Health reporting for the container CLI and the resource caches."""

import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..config.holder import ConfigHolder
from .cache.catalog import ResourceCatalog
from .cli.client import ContainerCli

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Outcome of a single health probe."""

    service: str
    status: HealthStatus
    response_time_ms: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "service": self.service,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }
        if self.response_time_ms is not None:
            result["response_time_ms"] = round(self.response_time_ms, 2)
        if self.error:
            result["error"] = self.error
        return result


class HealthService:
    """Probes the CLI binary and summarizes cache state."""

    def __init__(self, cli: ContainerCli, catalog: ResourceCatalog, config_holder: ConfigHolder):
        self._cli = cli
        self._catalog = catalog
        self._config_holder = config_holder

    async def check_binary(self) -> HealthCheckResult:
        """Run the version probe.

        A missing binary is reported as UNHEALTHY; callers treat it as a
        degraded mode rather than a crash.
        """
        binary = self._config_holder.current.binary_path
        started = time.perf_counter()
        result = await self._cli.get_version()
        elapsed_ms = (time.perf_counter() - started) * 1000

        details = {"binary": binary, "resolved_path": shutil.which(binary)}
        if result.success:
            details["version"] = result.data
            return HealthCheckResult(
                service="container_cli",
                status=HealthStatus.HEALTHY,
                response_time_ms=elapsed_ms,
                details=details,
            )

        details["error_kind"] = result.error_kind.value if result.error_kind else None
        details["exit_code"] = result.exit_code
        logger.warning("Container CLI probe failed", binary=binary, error=result.error)
        return HealthCheckResult(
            service="container_cli",
            status=HealthStatus.UNHEALTHY,
            response_time_ms=elapsed_ms,
            details=details,
            error=result.error,
        )

    def check_caches(self) -> HealthCheckResult:
        stats = self._catalog.stats()
        failing = [name for name, entry in stats.items() if entry["last_error"]]
        return HealthCheckResult(
            service="resource_caches",
            status=HealthStatus.DEGRADED if failing else HealthStatus.HEALTHY,
            details=stats,
            error=f"Last refresh failed for: {', '.join(failing)}" if failing else None,
        )

    async def check_all(self) -> Dict[str, HealthCheckResult]:
        binary = await self.check_binary()
        caches = self.check_caches()
        return {binary.service: binary, caches.service: caches}

    @staticmethod
    def get_overall_status(results: Dict[str, HealthCheckResult]) -> HealthStatus:
        statuses = {r.status for r in results.values()}
        if HealthStatus.UNHEALTHY in statuses:
            return HealthStatus.UNHEALTHY
        if HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY
