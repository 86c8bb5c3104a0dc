"""System information and live configuration endpoints."""

import structlog
from fastapi import APIRouter, Depends

from ..dependencies.auth import verify_api_key
from ..dependencies.services import ConfigHolderDep, ContainerCliDep
from ..models.options import ConfigUpdate
from ..utils.request_helpers import ensure_success

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/system/info", summary="Engine information")
async def system_info(cli: ContainerCliDep):
    return ensure_success(await cli.system_info(), "read system info")


@router.get("/system/version", summary="CLI version")
async def system_version(cli: ContainerCliDep):
    return {"version": ensure_success(await cli.get_version(), "read CLI version")}


@router.get("/system/stats", summary="Resource usage of all running containers")
async def system_stats(cli: ContainerCliDep):
    return ensure_success(await cli.container_stats(), "read container stats")


@router.get("/config", summary="Current adapter configuration")
async def get_config(config_holder: ConfigHolderDep):
    return config_holder.current.model_dump()


@router.put("/config", summary="Update adapter configuration")
async def update_config(update: ConfigUpdate, config_holder: ConfigHolderDep):
    """Apply a partial update; subscribers react to the change."""
    changes = update.model_dump(exclude_none=True)
    new = config_holder.update(**changes)
    logger.info("Configuration updated via API", fields=sorted(changes))
    return new.model_dump()


@router.post("/config/reload", summary="Reload configuration from the environment")
async def reload_config(config_holder: ConfigHolderDep):
    changed = config_holder.reload()
    return {"changed": changed, "config": config_holder.current.model_dump()}
