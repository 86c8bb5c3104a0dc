"""
Container control CLI.

Usage:
  container-control status                 # Binary probe and snapshot counts
  container-control ls containers          # List a resource kind
  container-control watch containers       # Reprint on every refresh

Deletions and prunes ask for confirmation when CONFIRM_BEFORE_DELETE is set,
unless --yes is passed.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from .config import settings
from .config.holder import ConfigHolder
from .config.logging import LoggingConfig
from .core.events import SnapshotChanged
from .models.errors import ContainerControlException, ResourceNotFoundError
from .models.options import (
    BuildImageOptions,
    CreateNetworkOptions,
    CreateVolumeOptions,
    PortSpec,
    PullImageOptions,
    RunContainerOptions,
    VolumeSpec,
)
from .models.resources import (
    Container,
    ContainerStatus,
    Image,
    Network,
    Protocol,
    ResourceKind,
    Volume,
)
from .services.cache.resource_cache import ResourceCache
from .services.cli.arguments import CommandBuilder
from .services.cli.client import ContainerCli
from .services.cli.gateway import CommandGateway
from .utils.logging import setup_logging
from .utils.request_helpers import ensure_success
from .utils.validation import validate_resource_name

console = Console()

KIND_CHOICES = {
    "containers": ResourceKind.CONTAINER,
    "container": ResourceKind.CONTAINER,
    "images": ResourceKind.IMAGE,
    "image": ResourceKind.IMAGE,
    "volumes": ResourceKind.VOLUME,
    "volume": ResourceKind.VOLUME,
    "networks": ResourceKind.NETWORK,
    "network": ResourceKind.NETWORK,
}

STATUS_STYLES = {
    ContainerStatus.RUNNING: "green",
    ContainerStatus.STOPPED: "red",
    ContainerStatus.EXITED: "red",
    ContainerStatus.PAUSED: "yellow",
    ContainerStatus.CREATED: "cyan",
}

PAST_TENSE = {"start": "Started", "stop": "Stopped", "restart": "Restarted", "kill": "Killed"}


# ============================================================================
# Service Initialization
# ============================================================================


def build_client(binary: Optional[str] = None) -> ContainerCli:
    """Wire a client from settings, optionally overriding the binary path."""
    extension = settings.extension
    if binary:
        extension = extension.model_copy(update={"binary_path": binary})
    holder = ConfigHolder(initial=extension)
    return ContainerCli(CommandGateway(holder, settings.gateway), CommandBuilder(), holder)


def fetcher_for(cli: ContainerCli, kind: ResourceKind):
    return {
        ResourceKind.CONTAINER: cli.list_containers,
        ResourceKind.IMAGE: cli.list_images,
        ResourceKind.VOLUME: cli.list_volumes,
        ResourceKind.NETWORK: cli.list_networks,
    }[kind]


# ============================================================================
# Argument Parsing Helpers
# ============================================================================


def parse_kind(value: str) -> ResourceKind:
    try:
        return KIND_CHOICES[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"unknown kind {value!r} (choose from containers, images, volumes, networks)"
        )


def parse_port_arg(value: str) -> PortSpec:
    """Parse ``[host_ip:]host:container[/proto]``."""
    spec, _, proto = value.partition("/")
    parts = spec.rsplit(":", 2)
    try:
        if len(parts) == 3:
            host_ip, host, container = parts
        elif len(parts) == 2:
            host_ip, (host, container) = None, parts
        else:
            raise ValueError(value)
        return PortSpec(
            host=int(host),
            container=int(container),
            host_ip=host_ip or None,
            protocol=Protocol(proto.lower()) if proto else Protocol.TCP,
        )
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port mapping {value!r}")


def parse_volume_arg(value: str) -> VolumeSpec:
    """Parse ``source:target[:ro]``."""
    parts = value.split(":")
    readonly = len(parts) == 3 and parts[2] == "ro"
    if len(parts) not in (2, 3) or (len(parts) == 3 and not readonly) or not all(parts[:2]):
        raise argparse.ArgumentTypeError(f"invalid volume binding {value!r}")
    return VolumeSpec(source=parts[0], target=parts[1], readonly=readonly)


def parse_pairs(values: Optional[Sequence[str]], what: str) -> Optional[Dict[str, str]]:
    """Turn ``KEY=VALUE`` arguments into an ordered dict."""
    if not values:
        return None
    pairs: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"invalid {what} {item!r}, expected KEY=VALUE")
        pairs[key] = value
    return pairs


# ============================================================================
# Formatting Helpers
# ============================================================================


def format_status(status: ContainerStatus) -> Text:
    return Text(status.value, style=STATUS_STYLES.get(status, "dim"))


def format_ports(container: Container) -> str:
    if not container.ports:
        return ""
    rendered = []
    for port in container.ports:
        host = f"{port.host_ip}:{port.host_port}" if port.host_ip else str(port.host_port)
        rendered.append(f"{host}->{port.container_port}/{port.protocol.value}")
    return ", ".join(rendered)


def build_containers_table(containers: List[Container]) -> Table:
    table = Table(title="Containers", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Image")
    table.add_column("Status")
    table.add_column("Ports")
    for c in containers:
        table.add_row(c.id[:12], c.name, c.image, format_status(c.status), format_ports(c))
    return table


def build_images_table(images: List[Image]) -> Table:
    table = Table(title="Images", box=box.ROUNDED)
    table.add_column("Repository", style="cyan")
    table.add_column("Tag")
    table.add_column("Digest", style="dim")
    table.add_column("Size", justify="right")
    for image in images:
        digest = (image.digest or image.id).replace("sha256:", "")[:12]
        table.add_row(image.repository, image.tag, digest, image.size)
    return table


def build_volumes_table(volumes: List[Volume]) -> Table:
    table = Table(title="Volumes", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Driver")
    table.add_column("Mountpoint", style="dim")
    for volume in volumes:
        table.add_row(volume.name, volume.display_driver, volume.mountpoint or "")
    return table


def build_networks_table(networks: List[Network]) -> Table:
    table = Table(title="Networks", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Driver")
    table.add_column("Subnet")
    for network in networks:
        subnets = [b.subnet for b in network.ipam.config if b.subnet] if network.ipam else []
        table.add_row(network.id[:12], network.name, network.driver or "", ", ".join(subnets))
    return table


TABLE_BUILDERS = {
    ResourceKind.CONTAINER: build_containers_table,
    ResourceKind.IMAGE: build_images_table,
    ResourceKind.VOLUME: build_volumes_table,
    ResourceKind.NETWORK: build_networks_table,
}


def confirm_destructive(cli: ContainerCli, args, prompt: str) -> bool:
    """Ask before deleting unless --yes was passed or the policy is off."""
    if args.yes or not cli.config_holder.current.confirm_before_delete:
        return True
    if Confirm.ask(prompt, default=False):
        return True
    console.print("[yellow]Cancelled[/yellow]")
    return False


# ============================================================================
# Commands
# ============================================================================


async def cmd_status(cli: ContainerCli, args) -> int:
    """Probe the binary and count each kind."""
    version = await cli.get_version()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Binary", cli.config_holder.current.binary_path)

    if not version.success:
        table.add_row("Available", Text("no", style="red"))
        table.add_row("Error", version.error or "")
        console.print(Panel(table, title="[bold]Container CLI[/bold]", border_style="red"))
        return 1

    table.add_row("Available", Text("yes", style="green"))
    table.add_row("Version", version.data or "")
    listings = await asyncio.gather(
        cli.list_containers(), cli.list_images(), cli.list_volumes(), cli.list_networks()
    )
    for kind, result in zip(TABLE_BUILDERS, listings):
        count = str(len(result.data)) if result.success else Text("error", style="red")
        table.add_row(kind.plural.capitalize(), count)
    console.print(Panel(table, title="[bold]Container CLI[/bold]", border_style="blue"))
    return 0


async def cmd_ls(cli: ContainerCli, args) -> int:
    result = await fetcher_for(cli, args.kind)()
    items = ensure_success(result, f"list {args.kind.plural}")
    console.print(TABLE_BUILDERS[args.kind](items or []))
    return 0


async def cmd_inspect(cli: ContainerCli, args) -> int:
    inspectors = {
        ResourceKind.CONTAINER: cli.inspect_container,
        ResourceKind.IMAGE: cli.inspect_image,
        ResourceKind.VOLUME: cli.inspect_volume,
        ResourceKind.NETWORK: cli.inspect_network,
    }
    document = ensure_success(await inspectors[args.kind](args.key), f"inspect {args.key}")
    if document is None:
        raise ResourceNotFoundError(args.kind.value, args.key)
    console.print_json(json.dumps(document))
    return 0


async def cmd_container_action(cli: ContainerCli, args) -> int:
    actions = {
        "start": lambda: cli.start_container(args.id),
        "stop": lambda: cli.stop_container(args.id, args.time),
        "restart": lambda: cli.restart_container(args.id, args.time),
        "kill": lambda: cli.kill_container(args.id, args.signal),
    }
    ensure_success(await actions[args.command](), f"{args.command} {args.id}")
    console.print(f"[green]{PAST_TENSE[args.command]} {args.id}[/green]")
    return 0


async def cmd_logs(cli: ContainerCli, args) -> int:
    logs = ensure_success(await cli.container_logs(args.id), f"read logs of {args.id}")
    console.print(logs or "", markup=False, highlight=False, end="")
    return 0


async def cmd_run(cli: ContainerCli, args) -> int:
    options = RunContainerOptions(
        image=args.image,
        name=args.name,
        detach=args.detach,
        remove=args.rm,
        env=parse_pairs(args.env, "environment variable"),
        ports=args.publish or None,
        volumes=args.volume or None,
        network=args.network,
        workdir=args.workdir,
        labels=parse_pairs(args.label, "label"),
        cmd=args.cmd or None,
    )
    output = ensure_success(await cli.run_container(options), f"run {args.image}")
    if output:
        console.print(output, markup=False, highlight=False)
    return 0


async def cmd_pull(cli: ContainerCli, args) -> int:
    with console.status(f"Pulling {args.image}..."):
        ensure_success(
            await cli.pull_image(PullImageOptions(image=args.image, platform=args.platform)),
            f"pull {args.image}",
        )
    console.print(f"[green]Pulled {args.image}[/green]")
    return 0


async def cmd_build(cli: ContainerCli, args) -> int:
    options = BuildImageOptions(
        context=args.context,
        dockerfile=args.file,
        tags=args.tag or None,
        build_args=parse_pairs(args.build_arg, "build argument"),
        no_cache=args.no_cache,
    )
    with console.status(f"Building {args.context}..."):
        ensure_success(await cli.build_image(options), f"build {args.context}")
    console.print("[green]Build complete[/green]")
    return 0


async def cmd_create(cli: ContainerCli, args) -> int:
    validate_resource_name(args.name, args.kind.value)
    if args.kind == ResourceKind.VOLUME:
        result = await cli.create_volume(
            CreateVolumeOptions(name=args.name, labels=parse_pairs(args.label, "label"))
        )
    elif args.kind == ResourceKind.NETWORK:
        result = await cli.create_network(
            CreateNetworkOptions(
                name=args.name,
                subnet=args.subnet,
                gateway=args.gateway,
                internal=args.internal,
                labels=parse_pairs(args.label, "label"),
            )
        )
    else:
        console.print(f"[red]Cannot create {args.kind.plural} this way[/red]")
        return 2
    ensure_success(result, f"create {args.kind.value} {args.name}")
    console.print(f"[green]Created {args.kind.value} {args.name}[/green]")
    return 0


async def cmd_rm(cli: ContainerCli, args) -> int:
    if args.kind in (ResourceKind.VOLUME, ResourceKind.NETWORK):
        validate_resource_name(args.key, args.kind.value)
    if not confirm_destructive(cli, args, f"Delete {args.kind.value} {args.key}?"):
        return 1

    deleters = {
        ResourceKind.CONTAINER: lambda: cli.delete_container(args.key, args.force),
        ResourceKind.IMAGE: lambda: cli.delete_image(args.key, args.force),
        ResourceKind.VOLUME: lambda: cli.delete_volume(args.key, args.force),
        ResourceKind.NETWORK: lambda: cli.delete_network(args.key),
    }
    ensure_success(await deleters[args.kind](), f"delete {args.kind.value} {args.key}")
    console.print(f"[green]Deleted {args.kind.value} {args.key}[/green]")
    return 0


async def cmd_prune(cli: ContainerCli, args) -> int:
    if args.kind not in (ResourceKind.IMAGE, ResourceKind.VOLUME):
        console.print(f"[red]Cannot prune {args.kind.plural}[/red]")
        return 2
    if not confirm_destructive(cli, args, f"Remove all unused {args.kind.plural}?"):
        return 1

    if args.kind == ResourceKind.IMAGE:
        result = await cli.prune_images(args.all)
    else:
        result = await cli.prune_volumes()
    output = ensure_success(result, f"prune {args.kind.plural}")
    if output:
        console.print(output, markup=False, highlight=False)
    return 0


async def cmd_info(cli: ContainerCli, args) -> int:
    info = ensure_success(await cli.system_info(), "read system info")
    if isinstance(info, (dict, list)):
        console.print_json(json.dumps(info))
    else:
        console.print(info or "", markup=False)
    return 0


async def cmd_watch(cli: ContainerCli, args) -> int:
    """Print the snapshot every time the cache refreshes."""
    holder: ConfigHolder = cli.config_holder
    if args.interval is not None:
        holder.update(poll_interval_ms=args.interval)
    if not holder.current.polling_enabled:
        console.print("[red]Polling is disabled (interval 0); nothing to watch[/red]")
        return 2

    cache = ResourceCache(args.kind, fetcher_for(cli, args.kind), holder)

    def on_change(event: SnapshotChanged) -> None:
        console.clear()
        console.print(
            f"[dim]{event.count} {args.kind.plural}, "
            f"updated {datetime.now().strftime('%H:%M:%S')} (Ctrl+C to exit)[/dim]"
        )
        console.print(TABLE_BUILDERS[args.kind](cache.snapshot))

    subscription = cache.subscribe(on_change)
    try:
        cache.start()
        first = await cache.refresh()
        if not first.success:
            console.print(f"[yellow]Refresh failed: {first.error}[/yellow]")
        while True:
            await asyncio.sleep(3600)
    finally:
        subscription.close()
        cache.dispose()


# ============================================================================
# Entry Point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="container-control",
        description="Manage containers, images, volumes and networks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s status
  %(prog)s ls containers
  %(prog)s inspect image nginx:latest
  %(prog)s run --name web -d -p 8080:80 nginx:latest
  %(prog)s rm volume data --yes
  %(prog)s watch containers --interval 2000
""",
    )
    parser.add_argument("--binary", help="Container CLI to use (default: CONTAINER_BINARY)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="CLI availability and resource counts")
    subparsers.add_parser("info", help="Engine system information")

    ls_p = subparsers.add_parser("ls", help="List resources of one kind")
    ls_p.add_argument("kind", type=parse_kind)

    inspect_p = subparsers.add_parser("inspect", help="Show a resource's inspect document")
    inspect_p.add_argument("kind", type=parse_kind)
    inspect_p.add_argument("key", help="ID or name")

    for action in ("start", "stop", "restart", "kill"):
        action_p = subparsers.add_parser(action, help=f"{action.capitalize()} a container")
        action_p.add_argument("id", help="Container ID or name")
        action_p.add_argument("--time", type=int, help="Seconds to wait before killing")
        action_p.add_argument("--signal", help="Signal to send (kill only)")

    logs_p = subparsers.add_parser("logs", help="Print container logs")
    logs_p.add_argument("id", help="Container ID or name")

    run_p = subparsers.add_parser("run", help="Run a container")
    run_p.add_argument("image")
    run_p.add_argument("cmd", nargs=argparse.REMAINDER, help="Command and arguments")
    run_p.add_argument("--name")
    run_p.add_argument("-d", "--detach", action="store_true")
    run_p.add_argument("--rm", action="store_true", help="Remove when stopped")
    run_p.add_argument("-e", "--env", action="append", metavar="KEY=VALUE")
    run_p.add_argument("-p", "--publish", action="append", type=parse_port_arg)
    run_p.add_argument("--volume", action="append", type=parse_volume_arg)
    run_p.add_argument("--network")
    run_p.add_argument("-w", "--workdir")
    run_p.add_argument("-l", "--label", action="append", metavar="KEY=VALUE")

    pull_p = subparsers.add_parser("pull", help="Pull an image")
    pull_p.add_argument("image")
    pull_p.add_argument("--platform")

    build_p = subparsers.add_parser("build", help="Build an image")
    build_p.add_argument("context")
    build_p.add_argument("-f", "--file")
    build_p.add_argument("-t", "--tag", action="append")
    build_p.add_argument("--build-arg", action="append", metavar="KEY=VALUE")
    build_p.add_argument("--no-cache", action="store_true")

    create_p = subparsers.add_parser("create", help="Create a volume or network")
    create_p.add_argument("kind", type=parse_kind)
    create_p.add_argument("name")
    create_p.add_argument("--subnet")
    create_p.add_argument("--gateway")
    create_p.add_argument("--internal", action="store_true")
    create_p.add_argument("-l", "--label", action="append", metavar="KEY=VALUE")

    rm_p = subparsers.add_parser("rm", help="Delete a resource")
    rm_p.add_argument("kind", type=parse_kind)
    rm_p.add_argument("key", help="ID, name or image reference")
    rm_p.add_argument("-f", "--force", action="store_true")
    rm_p.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    prune_p = subparsers.add_parser("prune", help="Remove unused images or volumes")
    prune_p.add_argument("kind", type=parse_kind)
    prune_p.add_argument("-a", "--all", action="store_true", help="All unused images")
    prune_p.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    watch_p = subparsers.add_parser("watch", help="Reprint a kind on every refresh")
    watch_p.add_argument("kind", type=parse_kind)
    watch_p.add_argument("--interval", type=int, help="Poll interval in milliseconds")

    return parser


HANDLERS = {
    "status": cmd_status,
    "info": cmd_info,
    "ls": cmd_ls,
    "inspect": cmd_inspect,
    "start": cmd_container_action,
    "stop": cmd_container_action,
    "restart": cmd_container_action,
    "kill": cmd_container_action,
    "logs": cmd_logs,
    "run": cmd_run,
    "pull": cmd_pull,
    "build": cmd_build,
    "create": cmd_create,
    "rm": cmd_rm,
    "prune": cmd_prune,
    "watch": cmd_watch,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        LoggingConfig(
            log_level="DEBUG" if args.verbose else "WARNING",
            log_format="console",
            log_file=settings.log_file,
        )
    )

    cli = build_client(args.binary)
    try:
        return asyncio.run(HANDLERS[args.command](cli, args))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except ContainerControlException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        return 0


if __name__ == "__main__":
    sys.exit(main())
