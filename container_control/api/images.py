"""Image endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query

from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, ConfigHolderDep, ContainerCliDep
from ..models.options import BuildImageOptions, PullImageOptions
from ..utils.request_helpers import ensure_confirmed, ensure_success

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/images", dependencies=[Depends(verify_api_key)])


@router.post("/pull", summary="Pull an image")
async def pull_image(options: PullImageOptions, cli: ContainerCliDep, catalog: CatalogDep):
    output = ensure_success(await cli.pull_image(options), f"pull {options.image}")
    logger.info("Image pulled", image=options.image)
    await catalog.images.refresh()
    return {"image": options.image, "output": output}


@router.post("/build", summary="Build an image")
async def build_image(options: BuildImageOptions, cli: ContainerCliDep, catalog: CatalogDep):
    output = ensure_success(await cli.build_image(options), f"build {options.context}")
    logger.info("Image built", context=options.context, tag=options.tag)
    await catalog.images.refresh()
    return {"tag": options.tag, "output": output}


@router.post("/prune", summary="Remove unused images")
async def prune_images(
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    all_images: bool = Query(False, alias="all"),
    confirm: bool = Query(False),
):
    ensure_confirmed(config_holder.current, confirm, "Pruning images")
    output = ensure_success(await cli.prune_images(all_images), "prune images")
    await catalog.images.refresh()
    return {"output": output}


@router.delete("/{reference:path}", summary="Delete an image")
async def delete_image(
    reference: str,
    cli: ContainerCliDep,
    catalog: CatalogDep,
    config_holder: ConfigHolderDep,
    force: bool = Query(False),
    confirm: bool = Query(False),
):
    ensure_confirmed(config_holder.current, confirm, f"Deleting image {reference}")
    ensure_success(await cli.delete_image(reference, force), f"delete {reference}")
    logger.info("Image deleted", reference=reference)
    await catalog.images.refresh()
    return {"reference": reference, "action": "delete"}
