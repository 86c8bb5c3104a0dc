"""Volume endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query

from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, ConfigHolderDep, ContainerCliDep
from ..models.options import CreateVolumeOptions
from ..utils.request_helpers import ensure_confirmed, ensure_success
from ..utils.validation import validate_resource_name

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/volumes", dependencies=[Depends(verify_api_key)])


@router.post("", status_code=201, summary="Create a volume")
async def create_volume(options: CreateVolumeOptions, cli: ContainerCliDep, catalog: CatalogDep):
    validate_resource_name(options.name, "volume")
    ensure_success(await cli.create_volume(options), f"create volume {options.name}")
    logger.info("Volume created", name=options.name)
    await catalog.volumes.refresh()
    return {"name": options.name}


@router.post("/prune", summary="Remove unused volumes")
async def prune_volumes(
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    confirm: bool = Query(False),
):
    ensure_confirmed(config_holder.current, confirm, "Pruning volumes")
    output = ensure_success(await cli.prune_volumes(), "prune volumes")
    await catalog.volumes.refresh()
    return {"output": output}


@router.delete("/{name}", summary="Delete a volume")
async def delete_volume(
    name: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    force: bool = Query(False),
    confirm: bool = Query(False),
):
    validate_resource_name(name, "volume")
    ensure_confirmed(config_holder.current, confirm, f"Deleting volume {name}")
    ensure_success(await cli.delete_volume(name, force), f"delete volume {name}")
    logger.info("Volume deleted", name=name)
    await catalog.volumes.refresh()
    return {"name": name, "action": "delete"}
