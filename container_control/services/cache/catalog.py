"""One ResourceCache per kind, started and disposed together."""

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from ...config.extension import ExtensionConfig
from ...config.holder import ConfigHolder
from ...models.resources import ResourceKind
from ...models.results import OperationResult
from ..cli.client import ContainerCli
from .resource_cache import ResourceCache

logger = structlog.get_logger(__name__)


def _binary_changed(new: ExtensionConfig, old: ExtensionConfig) -> bool:
    return new.binary_path != old.binary_path


def _container_listing_changed(new: ExtensionConfig, old: ExtensionConfig) -> bool:
    return _binary_changed(new, old) or new.show_stopped != old.show_stopped


class ResourceCatalog:
    """Owns the container, image, volume and network caches."""

    def __init__(self, cli: ContainerCli, config_holder: ConfigHolder):
        self._cli = cli
        self._config_holder = config_holder
        self._caches: Dict[ResourceKind, ResourceCache] = {
            ResourceKind.CONTAINER: ResourceCache(
                ResourceKind.CONTAINER,
                cli.list_containers,
                config_holder,
                refresh_on_change=_container_listing_changed,
            ),
            ResourceKind.IMAGE: ResourceCache(
                ResourceKind.IMAGE, cli.list_images, config_holder, _binary_changed
            ),
            ResourceKind.VOLUME: ResourceCache(
                ResourceKind.VOLUME, cli.list_volumes, config_holder, _binary_changed
            ),
            ResourceKind.NETWORK: ResourceCache(
                ResourceKind.NETWORK, cli.list_networks, config_holder, _binary_changed
            ),
        }
        self._started = False

    @property
    def cli(self) -> ContainerCli:
        return self._cli

    @property
    def containers(self) -> ResourceCache:
        return self._caches[ResourceKind.CONTAINER]

    @property
    def images(self) -> ResourceCache:
        return self._caches[ResourceKind.IMAGE]

    @property
    def volumes(self) -> ResourceCache:
        return self._caches[ResourceKind.VOLUME]

    @property
    def networks(self) -> ResourceCache:
        return self._caches[ResourceKind.NETWORK]

    def get(self, kind: ResourceKind) -> ResourceCache:
        return self._caches[kind]

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        for cache in self._caches.values():
            cache.start()
        logger.info(
            "Resource catalog started",
            poll_interval_ms=self._config_holder.current.poll_interval_ms,
        )

    async def refresh_all(
        self, kinds: Optional[List[ResourceKind]] = None
    ) -> Dict[ResourceKind, OperationResult]:
        """Refresh several kinds concurrently and report each outcome."""
        selected = kinds or list(self._caches)
        results = await asyncio.gather(*(self._caches[kind].refresh() for kind in selected))
        return dict(zip(selected, results))

    def stats(self) -> Dict[str, Any]:
        return {kind.plural: cache.stats() for kind, cache in self._caches.items()}

    def dispose(self) -> None:
        for cache in self._caches.values():
            cache.dispose()
        logger.info("Resource catalog disposed")
