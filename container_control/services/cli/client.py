"""Typed operations against the container CLI.

Each method builds an argument vector, runs it through the gateway and
normalizes the output. Failures are returned, never raised.
"""

from typing import Any, Dict, List, Optional

import structlog

from ...config.holder import ConfigHolder
from ...models.options import (
    BuildImageOptions,
    CreateNetworkOptions,
    CreateVolumeOptions,
    PullImageOptions,
    RunContainerOptions,
)
from ...models.resources import Container, Image, Network, Volume
from ...models.results import OperationResult
from .arguments import CommandBuilder
from .gateway import CommandGateway
from .normalizer import (
    first_document,
    parse_container,
    parse_image,
    parse_list,
    parse_network,
    parse_volume,
)

logger = structlog.get_logger(__name__)


class ContainerCli:
    """High-level client for the container binary."""

    def __init__(
        self,
        gateway: CommandGateway,
        builder: Optional[CommandBuilder] = None,
        config_holder: Optional[ConfigHolder] = None,
    ):
        self._gateway = gateway
        self._builder = builder or CommandBuilder()
        self._config_holder = config_holder

    @property
    def builder(self) -> CommandBuilder:
        return self._builder

    @property
    def config_holder(self) -> Optional[ConfigHolder]:
        return self._config_holder

    async def _run(self, args: List[str]) -> OperationResult[str]:
        return await self._gateway.execute(args)

    async def _inspect(self, args: List[str]) -> OperationResult[Optional[Dict[str, Any]]]:
        result = await self._gateway.execute(args, parse_json=True)
        return result.map(first_document)

    # ==================== Containers ====================

    async def list_containers(
        self, all_containers: Optional[bool] = None
    ) -> OperationResult[List[Container]]:
        """List containers.

        ``all_containers`` defaults to the live ``show_stopped`` setting.
        """
        if all_containers is None:
            all_containers = (
                self._config_holder.current.show_stopped if self._config_holder else True
            )
        result = await self._gateway.execute(
            self._builder.list_containers(all_containers), parse_json=True
        )
        return result.map(lambda raw: parse_list(raw, parse_container))

    async def inspect_container(self, container_id: str):
        return await self._inspect(self._builder.inspect_container(container_id))

    async def start_container(self, container_id: str) -> OperationResult[str]:
        return await self._run(self._builder.start_container(container_id))

    async def stop_container(
        self, container_id: str, timeout: Optional[int] = None
    ) -> OperationResult[str]:
        return await self._run(self._builder.stop_container(container_id, timeout))

    async def kill_container(
        self, container_id: str, signal: Optional[str] = None
    ) -> OperationResult[str]:
        return await self._run(self._builder.kill_container(container_id, signal))

    async def delete_container(self, container_id: str, force: bool = False) -> OperationResult[str]:
        return await self._run(self._builder.delete_container(container_id, force))

    async def restart_container(
        self, container_id: str, timeout: Optional[int] = None
    ) -> OperationResult[str]:
        """Stop then start. Start is never attempted if stop failed."""
        stopped = await self.stop_container(container_id, timeout)
        if not stopped.success:
            logger.warning(
                "Restart aborted, stop failed",
                container_id=container_id,
                error=stopped.error,
            )
            return stopped
        return await self.start_container(container_id)

    async def run_container(self, options: RunContainerOptions) -> OperationResult[str]:
        """Run a container; data is the CLI output (the new container id when detached)."""
        result = await self._run(self._builder.run_container(options))
        return result.map(lambda out: out.strip() if isinstance(out, str) else out)

    async def container_logs(self, container_id: str) -> OperationResult[str]:
        return await self._run(self._builder.container_logs(container_id))

    async def container_stats(self, container_id: Optional[str] = None) -> OperationResult[Any]:
        return await self._gateway.execute(
            self._builder.container_stats(container_id), parse_json=True
        )

    # ==================== Images ====================

    async def list_images(self) -> OperationResult[List[Image]]:
        result = await self._gateway.execute(self._builder.list_images(), parse_json=True)
        return result.map(lambda raw: parse_list(raw, parse_image))

    async def inspect_image(self, reference: str):
        return await self._inspect(self._builder.inspect_image(reference))

    async def pull_image(self, options: PullImageOptions) -> OperationResult[str]:
        return await self._gateway.execute(
            self._builder.pull_image(options),
            timeout=self._gateway.limits.long_running_timeout_seconds,
        )

    async def build_image(self, options: BuildImageOptions) -> OperationResult[str]:
        return await self._gateway.execute(
            self._builder.build_image(options),
            timeout=self._gateway.limits.long_running_timeout_seconds,
        )

    async def delete_image(self, reference: str, force: bool = False) -> OperationResult[str]:
        return await self._run(self._builder.delete_image(reference, force))

    async def prune_images(self, all_images: bool = False) -> OperationResult[str]:
        return await self._run(self._builder.prune_images(all_images))

    # ==================== Volumes ====================

    async def list_volumes(self) -> OperationResult[List[Volume]]:
        result = await self._gateway.execute(self._builder.list_volumes(), parse_json=True)
        return result.map(lambda raw: parse_list(raw, parse_volume))

    async def inspect_volume(self, name: str):
        return await self._inspect(self._builder.inspect_volume(name))

    async def create_volume(self, options: CreateVolumeOptions) -> OperationResult[str]:
        return await self._run(self._builder.create_volume(options))

    async def delete_volume(self, name: str, force: bool = False) -> OperationResult[str]:
        return await self._run(self._builder.delete_volume(name, force))

    async def prune_volumes(self) -> OperationResult[str]:
        return await self._run(self._builder.prune_volumes())

    # ==================== Networks ====================

    async def list_networks(self) -> OperationResult[List[Network]]:
        result = await self._gateway.execute(self._builder.list_networks(), parse_json=True)
        return result.map(lambda raw: parse_list(raw, parse_network))

    async def inspect_network(self, network_id: str):
        return await self._inspect(self._builder.inspect_network(network_id))

    async def create_network(self, options: CreateNetworkOptions) -> OperationResult[str]:
        return await self._run(self._builder.create_network(options))

    async def delete_network(self, network_id: str) -> OperationResult[str]:
        return await self._run(self._builder.delete_network(network_id))

    # ==================== System ====================

    async def system_info(self) -> OperationResult[Any]:
        return await self._gateway.execute(self._builder.system_info(), parse_json=True)

    async def get_version(self) -> OperationResult[str]:
        result = await self._run(self._builder.version())
        return result.map(lambda out: out.strip() if isinstance(out, str) else out)

    async def is_available(self) -> bool:
        """Probe the binary. Absence is a degraded mode, not an error."""
        result = await self.get_version()
        if not result.success:
            logger.warning(
                "Container CLI unavailable",
                error=result.error,
                error_kind=result.error_kind.value if result.error_kind else None,
            )
        return result.success
