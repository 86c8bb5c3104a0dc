"""Cached snapshots, lookups and inspect documents for every resource kind."""

from enum import Enum
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query

from ..dependencies.auth import verify_api_key
from ..dependencies.services import CatalogDep, ContainerCliDep
from ..models.errors import ResourceNotFoundError
from ..models.resources import ResourceKind
from ..utils.request_helpers import ensure_success

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_api_key)])


class ResourceCollection(str, Enum):
    """URL segment for each resource kind."""

    CONTAINERS = "containers"
    IMAGES = "images"
    VOLUMES = "volumes"
    NETWORKS = "networks"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind(self.value[:-1])


@router.post("/refresh", summary="Refresh resource snapshots")
async def refresh_resources(
    catalog: CatalogDep,
    kinds: Optional[List[ResourceCollection]] = Query(None, alias="kind"),
):
    """Refresh the selected kinds (all by default) concurrently."""
    selected = [collection.kind for collection in kinds] if kinds else None
    results = await catalog.refresh_all(selected)
    return {
        kind.plural: {
            "success": result.success,
            "count": len(result.data or []) if result.success else None,
            "error": result.error,
        }
        for kind, result in results.items()
    }


@router.get("/inspect/{collection}/{key:path}", summary="Inspect a resource")
async def inspect_resource(collection: ResourceCollection, key: str, cli: ContainerCliDep):
    """Return the engine's inspect document verbatim."""
    inspectors = {
        ResourceCollection.CONTAINERS: cli.inspect_container,
        ResourceCollection.IMAGES: cli.inspect_image,
        ResourceCollection.VOLUMES: cli.inspect_volume,
        ResourceCollection.NETWORKS: cli.inspect_network,
    }
    document = ensure_success(
        await inspectors[collection](key), f"inspect {collection.kind.value} {key}"
    )
    if document is None:
        raise ResourceNotFoundError(collection.kind.value, key)
    return document


@router.get("/{collection}", summary="List cached resources")
async def list_resources(
    collection: ResourceCollection,
    catalog: CatalogDep,
    refresh: bool = Query(False, description="Refresh before answering"),
):
    cache = catalog.get(collection.kind)
    if refresh:
        ensure_success(await cache.refresh(), f"list {collection.value}")
        items = cache.snapshot
    else:
        items = await cache.get_snapshot()
    return [item.model_dump(mode="json") for item in items]


@router.get("/{collection}/{key:path}", summary="Look up a cached resource")
async def get_resource(collection: ResourceCollection, key: str, catalog: CatalogDep):
    """Resolve by id or name against the current snapshot."""
    item = await catalog.get(collection.kind).find(key)
    if item is None:
        raise ResourceNotFoundError(collection.kind.value, key)
    return item.model_dump(mode="json")
