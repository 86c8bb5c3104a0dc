"""Network endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query

from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, ConfigHolderDep, ContainerCliDep
from ..models.options import CreateNetworkOptions
from ..utils.request_helpers import ensure_confirmed, ensure_success
from ..utils.validation import validate_resource_name

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/networks", dependencies=[Depends(verify_api_key)])


@router.post("", status_code=201, summary="Create a network")
async def create_network(
    options: CreateNetworkOptions, cli: ContainerCliDep, catalog: CatalogDep
):
    validate_resource_name(options.name, "network")
    ensure_success(await cli.create_network(options), f"create network {options.name}")
    logger.info("Network created", name=options.name, subnet=options.subnet)
    await catalog.networks.refresh()
    return {"name": options.name}


@router.delete("/{network_id}", summary="Delete a network")
async def delete_network(
    network_id: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    confirm: bool = Query(False),
):
    validate_resource_name(network_id, "network")
    ensure_confirmed(config_holder.current, confirm, f"Deleting network {network_id}")
    ensure_success(await cli.delete_network(network_id), f"delete network {network_id}")
    logger.info("Network deleted", network_id=network_id)
    await catalog.networks.refresh()
    return {"id": network_id, "action": "delete"}
