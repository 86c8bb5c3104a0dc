"""Container lifecycle endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, ConfigHolderDep, ContainerCliDep
from ..models.options import RunContainerOptions
from ..utils.request_helpers import ensure_confirmed, ensure_success

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/containers", dependencies=[Depends(verify_api_key)])


async def _refresh_containers(catalog) -> None:
    # Failures are logged by the cache and leave the old snapshot in place
    await catalog.containers.refresh()


@router.post("", status_code=201, summary="Run a container")
async def run_container(
    options: RunContainerOptions, cli: ContainerCliDep, catalog: CatalogDep
):
    output = ensure_success(await cli.run_container(options), f"run {options.image}")
    logger.info("Container started", image=options.image, name=options.name)
    await _refresh_containers(catalog)
    return {"output": output}


@router.post("/{container_id}/start", summary="Start a container")
async def start_container(container_id: str, cli: ContainerCliDep, catalog: CatalogDep):
    ensure_success(await cli.start_container(container_id), f"start {container_id}")
    await _refresh_containers(catalog)
    return {"id": container_id, "action": "start"}


@router.post("/{container_id}/stop", summary="Stop a container")
async def stop_container(
    container_id: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    timeout: Optional[int] = Query(None, ge=0, description="Seconds before kill"),
):
    ensure_success(await cli.stop_container(container_id, timeout), f"stop {container_id}")
    await _refresh_containers(catalog)
    return {"id": container_id, "action": "stop"}


@router.post("/{container_id}/restart", summary="Restart a container")
async def restart_container(
    container_id: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    timeout: Optional[int] = Query(None, ge=0),
):
    result = await cli.restart_container(container_id, timeout)
    await _refresh_containers(catalog)
    ensure_success(result, f"restart {container_id}")
    return {"id": container_id, "action": "restart"}


@router.post("/{container_id}/kill", summary="Kill a container")
async def kill_container(
    container_id: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    signal: Optional[str] = Query(None, description="Signal name, e.g. SIGTERM"),
):
    ensure_success(await cli.kill_container(container_id, signal), f"kill {container_id}")
    await _refresh_containers(catalog)
    return {"id": container_id, "action": "kill"}


@router.delete("/{container_id}", summary="Delete a container")
async def delete_container(
    container_id: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    force: bool = Query(False),
    confirm: bool = Query(False),
):
    ensure_confirmed(config_holder.current, confirm, f"Deleting container {container_id}")
    ensure_success(await cli.delete_container(container_id, force), f"delete {container_id}")
    logger.info("Container deleted", container_id=container_id, force=force)
    await _refresh_containers(catalog)
    return {"id": container_id, "action": "delete"}


@router.get("/{container_id}/logs", summary="Container logs")
async def container_logs(container_id: str, cli: ContainerCliDep):
    logs = ensure_success(await cli.container_logs(container_id), f"read logs of {container_id}")
    return {"id": container_id, "logs": logs or ""}


@router.get("/{container_id}/stats", summary="Container resource usage")
async def container_stats(container_id: str, cli: ContainerCliDep):
    return ensure_success(
        await cli.container_stats(container_id), f"read stats of {container_id}"
    )
