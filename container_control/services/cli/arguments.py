"""Argument vectors for the container CLI.

CommandBuilder maps typed operation requests to argv lists. Every element
is a discrete token passed straight to the process; nothing here is ever
joined into a shell string. Names are assumed to be validated by the
caller, so construction cannot fail.
"""

from typing import Dict, List, Optional

from ...models.options import (
    BuildImageOptions,
    CreateNetworkOptions,
    CreateVolumeOptions,
    MountSpec,
    PortSpec,
    PullImageOptions,
    RunContainerOptions,
    VolumeSpec,
)
from ...models.resources import Protocol

JSON_FORMAT = ["--format", "json"]


def _append_pairs(args: List[str], flag: str, values: Optional[Dict[str, str]]) -> None:
    """Append ``flag key=value`` once per entry, in insertion order."""
    if values:
        for key, value in values.items():
            args.extend([flag, f"{key}={value}"])


def _append_option(args: List[str], flag: str, value) -> None:
    if value is not None and value != "":
        args.extend([flag, str(value)])


def format_port(port: PortSpec) -> str:
    spec = f"{port.host_ip}:" if port.host_ip else ""
    spec += f"{port.host}:{port.container}"
    if port.protocol != Protocol.TCP:
        spec += f"/{port.protocol.value}"
    return spec


def format_volume(volume: VolumeSpec) -> str:
    spec = f"{volume.source}:{volume.target}"
    if volume.readonly:
        spec += ":ro"
    return spec


def format_mount(mount: MountSpec) -> str:
    spec = f"type={mount.type.value},source={mount.source},target={mount.target}"
    if mount.readonly:
        spec += ",readonly"
    return spec


class CommandBuilder:
    """Builds CLI argument vectors (not including the binary itself)."""

    # ==================== Containers ====================

    def list_containers(self, all_containers: bool = False) -> List[str]:
        args = ["list", *JSON_FORMAT]
        if all_containers:
            args.append("--all")
        return args

    def inspect_container(self, container_id: str) -> List[str]:
        return ["inspect", *JSON_FORMAT, container_id]

    def start_container(self, container_id: str) -> List[str]:
        return ["start", container_id]

    def stop_container(self, container_id: str, timeout: Optional[int] = None) -> List[str]:
        args = ["stop"]
        if timeout is not None:
            args.extend(["--time", str(timeout)])
        args.append(container_id)
        return args

    def kill_container(self, container_id: str, signal: Optional[str] = None) -> List[str]:
        args = ["kill"]
        _append_option(args, "--signal", signal)
        args.append(container_id)
        return args

    def delete_container(self, container_id: str, force: bool = False) -> List[str]:
        args = ["delete"]
        if force:
            args.append("--force")
        args.append(container_id)
        return args

    def container_logs(self, container_id: str, follow: bool = False) -> List[str]:
        args = ["logs"]
        if follow:
            args.append("--follow")
        args.append(container_id)
        return args

    def container_stats(self, container_id: Optional[str] = None) -> List[str]:
        args = ["stats", *JSON_FORMAT, "--no-stream"]
        if container_id:
            args.append(container_id)
        return args

    def run_container(self, options: RunContainerOptions) -> List[str]:
        """Build ``run`` arguments.

        Flag order follows the CLI's help grouping: management, environment,
        ports and storage, network, process, resources, platform, labels,
        DNS, then the image and trailing command.
        """
        args: List[str] = ["run"]

        # Management options
        _append_option(args, "--name", options.name)
        if options.detach:
            args.append("--detach")
        if options.remove:
            args.append("--rm")
        if options.interactive:
            args.append("--interactive")
        if options.tty:
            args.append("--tty")

        # Environment
        _append_pairs(args, "--env", options.env)
        _append_option(args, "--env-file", options.env_file)

        # Ports and storage
        for port in options.ports or []:
            args.extend(["--publish", format_port(port)])
        for volume in options.volumes or []:
            args.extend(["--volume", format_volume(volume)])
        for mount in options.mounts or []:
            args.extend(["--mount", format_mount(mount)])

        _append_option(args, "--network", options.network)

        # Process options
        _append_option(args, "--workdir", options.workdir)
        _append_option(args, "--user", options.user)

        # Resource limits
        if options.cpus:
            cpus = int(options.cpus) if float(options.cpus).is_integer() else options.cpus
            args.extend(["--cpus", str(cpus)])
        _append_option(args, "--memory", options.memory)

        _append_option(args, "--platform", options.platform)
        _append_option(args, "--entrypoint", options.entrypoint)

        _append_pairs(args, "--label", options.labels)

        for server in options.dns or []:
            args.extend(["--dns", server])
        for domain in options.dns_search or []:
            args.extend(["--dns-search", domain])

        if options.rosetta:
            args.append("--rosetta")
        if options.ssh:
            args.append("--ssh")

        args.append(options.image)
        if options.cmd:
            args.extend(options.cmd)

        return args

    # ==================== Images ====================

    def list_images(self) -> List[str]:
        return ["image", "list", *JSON_FORMAT]

    def inspect_image(self, reference: str) -> List[str]:
        return ["image", "inspect", *JSON_FORMAT, reference]

    def pull_image(self, options: PullImageOptions) -> List[str]:
        args = ["image", "pull"]
        _append_option(args, "--platform", options.platform)
        args.append(options.image)
        return args

    def build_image(self, options: BuildImageOptions) -> List[str]:
        args = ["build"]
        _append_option(args, "--file", options.dockerfile)
        _append_option(args, "--tag", options.tag)
        for tag in options.tags or []:
            args.extend(["--tag", tag])
        _append_pairs(args, "--build-arg", options.build_args)
        _append_option(args, "--target", options.target)
        _append_option(args, "--platform", options.platform)
        if options.no_cache:
            args.append("--no-cache")
        _append_pairs(args, "--label", options.labels)
        args.append(options.context)
        return args

    def delete_image(self, reference: str, force: bool = False) -> List[str]:
        args = ["image", "delete"]
        if force:
            args.append("--force")
        args.append(reference)
        return args

    def prune_images(self, all_images: bool = False) -> List[str]:
        args = ["image", "prune", "--force"]
        if all_images:
            args.append("--all")
        return args

    # ==================== Volumes ====================

    def list_volumes(self) -> List[str]:
        return ["volume", "list", *JSON_FORMAT]

    def inspect_volume(self, name: str) -> List[str]:
        return ["volume", "inspect", *JSON_FORMAT, name]

    def create_volume(self, options: CreateVolumeOptions) -> List[str]:
        args = ["volume", "create"]
        _append_option(args, "--driver", options.driver)
        _append_pairs(args, "--label", options.labels)
        args.append(options.name)
        return args

    def delete_volume(self, name: str, force: bool = False) -> List[str]:
        args = ["volume", "delete"]
        if force:
            args.append("--force")
        args.append(name)
        return args

    def prune_volumes(self) -> List[str]:
        return ["volume", "prune", "--force"]

    # ==================== Networks ====================

    def list_networks(self) -> List[str]:
        return ["network", "list", *JSON_FORMAT]

    def inspect_network(self, network_id: str) -> List[str]:
        return ["network", "inspect", *JSON_FORMAT, network_id]

    def create_network(self, options: CreateNetworkOptions) -> List[str]:
        args = ["network", "create"]
        _append_option(args, "--driver", options.driver)
        _append_option(args, "--subnet", options.subnet)
        _append_option(args, "--gateway", options.gateway)
        if options.internal:
            args.append("--internal")
        _append_pairs(args, "--label", options.labels)
        args.append(options.name)
        return args

    def delete_network(self, network_id: str) -> List[str]:
        return ["network", "delete", network_id]

    # ==================== System ====================

    def system_info(self) -> List[str]:
        return ["system", "info", *JSON_FORMAT]

    def version(self) -> List[str]:
        return ["--version"]
