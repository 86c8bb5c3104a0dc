"""Normalization of CLI JSON output into domain models.

Parsers accept both the native engine shape (nested ``configuration`` /
``descriptor`` objects, camelCase keys) and Docker-style TitleCase keys.
A record missing an expected field degrades to safe defaults instead of
failing, so one malformed entry never truncates a list.
"""

import math
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import structlog

from ...models.resources import (
    Container,
    ContainerStatus,
    Image,
    IpamBlock,
    IpamConfig,
    Mount,
    MountType,
    Network,
    PortMapping,
    Protocol,
    Volume,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SIZE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]

_STATUS_MAP = {
    "running": ContainerStatus.RUNNING,
    "stopped": ContainerStatus.STOPPED,
    "exited": ContainerStatus.STOPPED,
    "created": ContainerStatus.CREATED,
    "paused": ContainerStatus.PAUSED,
}

_DISPLAY_PREFIXES = ("docker.io/library/", "docker.io/")


# =========================================================================
# Scalar helpers
# =========================================================================


def normalize_status(raw: Any) -> ContainerStatus:
    """Map a raw status string to ContainerStatus. Never fails."""
    if not isinstance(raw, str):
        return ContainerStatus.UNKNOWN
    return _STATUS_MAP.get(raw.strip().lower(), ContainerStatus.UNKNOWN)


def split_reference(reference: str) -> Tuple[str, str]:
    """Split an image reference into (repository, tag).

    A colon counts as the tag separator only when it follows the last
    slash; a registry port colon always precedes one. The display
    prefixes ``docker.io/library/`` and ``docker.io/`` are dropped.
    """
    repository, tag = reference, "latest"
    last_colon = reference.rfind(":")
    last_slash = reference.rfind("/")
    if last_colon > last_slash:
        repository = reference[:last_colon]
        tag = reference[last_colon + 1:]

    for prefix in _DISPLAY_PREFIXES:
        if repository.startswith(prefix):
            repository = repository[len(prefix):]
            break

    return repository, tag


def format_size(size_bytes: int) -> str:
    """Format a byte count with the largest fitting IEC unit."""
    if size_bytes <= 0:
        return "0 B"
    exponent = min(int(math.log(size_bytes, 1024)), len(SIZE_UNITS) - 1)
    # log() can land just under an exact power of 1024
    if exponent + 1 < len(SIZE_UNITS) and size_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    return f"{size_bytes / 1024 ** exponent:.1f} {SIZE_UNITS[exponent]}"


def _get(raw: Dict[str, Any], *keys: str) -> Any:
    """First present value among ``keys``."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _as_opt_str(value: Any) -> Optional[str]:
    text = _as_str(value)
    return text or None


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_opt_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return None


def _as_labels(value: Any) -> Optional[Dict[str, str]]:
    if not isinstance(value, dict):
        return None
    return {str(k): _as_str(v) for k, v in value.items()}


def _degraded(kind: str, field: str, raw: Any) -> None:
    logger.debug("Degraded field in CLI record", kind=kind, field=field, value=repr(raw)[:120])


# =========================================================================
# Sub-objects
# =========================================================================


def parse_port(raw: Any) -> Optional[PortMapping]:
    data = _as_dict(raw)
    host_port = _as_int(_get(data, "hostPort", "HostPort", "host_port"), -1)
    container_port = _as_int(
        _get(data, "containerPort", "ContainerPort", "PrivatePort", "container_port"), -1
    )
    if host_port < 0 or container_port < 0:
        _degraded("port", "hostPort/containerPort", raw)
        return None

    proto = _as_str(_get(data, "proto", "protocol", "Protocol", "Type")).lower()
    return PortMapping(
        host_ip=_as_opt_str(_get(data, "hostAddress", "hostIp", "HostIp", "IP")),
        host_port=host_port,
        container_port=container_port,
        protocol=Protocol.UDP if proto == "udp" else Protocol.TCP,
    )


def _mount_type(raw_type: Any) -> Optional[MountType]:
    # Native output nests the type as a single-key object, e.g. {"volume": {...}}
    if isinstance(raw_type, dict) and len(raw_type) == 1:
        raw_type = next(iter(raw_type))
    name = _as_str(raw_type).lower()
    if name == "virtiofs":
        return MountType.BIND
    try:
        return MountType(name)
    except ValueError:
        return None


def parse_mount(raw: Any) -> Optional[Mount]:
    data = _as_dict(raw)
    mount_type = _mount_type(_get(data, "type", "Type"))
    target = _as_str(_get(data, "target", "destination", "Destination", "Target"))
    if mount_type is None or not target:
        _degraded("mount", "type/target", raw)
        return None

    options = _get(data, "options", "Options")
    readonly = _as_opt_bool(_get(data, "readonly", "readOnly", "ReadOnly"))
    if readonly is None:
        rw = _as_opt_bool(_get(data, "RW"))
        readonly = (rw is False) or (isinstance(options, list) and "ro" in options)

    return Mount(
        type=mount_type,
        source=_as_str(_get(data, "source", "Source", "Name")),
        target=target,
        readonly=readonly,
    )


def _parse_many(raw: Any, parser: Callable[[Any], Optional[T]]) -> Optional[List[T]]:
    """Parse a list of sub-objects; ``None`` when absent or empty."""
    if not isinstance(raw, list):
        return None
    parsed = [item for item in (parser(entry) for entry in raw) if item is not None]
    return parsed or None


# =========================================================================
# Resources
# =========================================================================


def parse_container(raw: Any) -> Container:
    data = _as_dict(raw)
    config = _as_dict(data.get("configuration"))
    image_info = _as_dict(config.get("image"))

    container_id = _as_str(_get(config, "id") or _get(data, "id", "Id", "ID"))
    if not container_id:
        _degraded("container", "id", raw)

    names = data.get("Names")
    name = _as_str(_get(config, "name") or _get(data, "name", "Name"))
    if not name and isinstance(names, list) and names:
        name = _as_str(names[0]).lstrip("/")

    image = _as_str(
        _get(image_info, "reference") or _get(config, "image") or _get(data, "image", "Image"),
        "unknown",
    )

    raw_status = _get(data, "status", "State", "state")
    if isinstance(raw_status, dict):
        raw_status = _get(raw_status, "Status", "status")

    return Container(
        id=container_id,
        name=name or container_id,
        image=image,
        status=normalize_status(raw_status),
        created=_as_str(
            _get(config, "created", "createdDate") or _get(data, "created", "Created", "CreatedAt")
        ),
        ports=_parse_many(
            _get(config, "publishedPorts") or _get(data, "ports", "Ports"), parse_port
        ),
        mounts=_parse_many(_get(config, "mounts") or _get(data, "mounts", "Mounts"), parse_mount),
        labels=_as_labels(_get(config, "labels") or _get(data, "labels", "Labels")),
    )


def parse_image(raw: Any) -> Image:
    data = _as_dict(raw)
    descriptor = _as_dict(data.get("descriptor"))

    reference = _as_str(_get(data, "reference", "Reference"))
    if not reference:
        repo_tags = data.get("RepoTags")
        if isinstance(repo_tags, list) and repo_tags:
            reference = _as_str(repo_tags[0])
    if not reference:
        _degraded("image", "reference", raw)
    repository, tag = split_reference(reference)

    digest = _as_opt_str(_get(descriptor, "digest") or _get(data, "digest", "Digest"))
    image_id = _as_str(_get(data, "id", "Id", "ID") or digest)
    size_bytes = _as_int(_get(descriptor, "size") or _get(data, "size", "Size"))

    return Image(
        id=image_id,
        repository=repository,
        tag=tag,
        digest=digest,
        size=format_size(size_bytes),
        size_bytes=size_bytes,
        created=_as_str(_get(data, "created", "Created", "CreatedAt")),
        labels=_as_labels(_get(data, "labels", "Labels")),
    )


def parse_volume(raw: Any) -> Volume:
    data = _as_dict(raw)
    name = _as_str(_get(data, "name", "Name"))
    if not name:
        _degraded("volume", "name", raw)

    return Volume(
        name=name,
        driver=_as_opt_str(_get(data, "driver", "Driver")),
        mountpoint=_as_opt_str(_get(data, "mountpoint", "Mountpoint", "source")),
        created=_as_opt_str(_get(data, "created", "createdAt", "CreatedAt")),
        scope=_as_opt_str(_get(data, "scope", "Scope")),
        labels=_as_labels(_get(data, "labels", "Labels")),
    )


def _parse_ipam(raw: Any) -> Optional[IpamConfig]:
    if not isinstance(raw, dict):
        return None
    entries = _get(raw, "config", "Config")
    if entries is None:
        entries = []
    elif not isinstance(entries, list):
        _degraded("network", "ipam.config", raw)
        entries = []

    blocks = []
    for entry in entries:
        if not isinstance(entry, dict):
            _degraded("network", "ipam.config[]", entry)
            continue
        blocks.append(
            IpamBlock(
                subnet=_as_opt_str(_get(entry, "subnet", "Subnet")),
                gateway=_as_opt_str(_get(entry, "gateway", "Gateway")),
            )
        )
    return IpamConfig(driver=_as_opt_str(_get(raw, "driver", "Driver")), config=blocks)


def parse_network(raw: Any) -> Network:
    data = _as_dict(raw)
    network_id = _as_str(_get(data, "id", "Id", "ID"))
    name = _as_str(_get(data, "name", "Name"))
    if not network_id and not name:
        _degraded("network", "id", raw)

    ipam = _parse_ipam(_get(data, "ipam", "IPAM"))
    if ipam is None:
        # Native output reports the allocated subnet under status
        status = _as_dict(data.get("status"))
        subnet = _as_opt_str(_get(status, "address", "subnet"))
        gateway = _as_opt_str(_get(status, "gateway"))
        if subnet or gateway:
            ipam = IpamConfig(config=[IpamBlock(subnet=subnet, gateway=gateway)])

    config = _as_dict(data.get("config"))
    return Network(
        id=network_id or name,
        name=name or network_id,
        driver=_as_opt_str(_get(data, "driver", "Driver") or _get(config, "mode")),
        scope=_as_opt_str(_get(data, "scope", "Scope")),
        internal=_as_opt_bool(_get(data, "internal", "Internal")),
        ipam=ipam,
        labels=_as_labels(_get(data, "labels", "Labels") or _get(config, "labels")),
    )


def parse_list(raw: Any, parser: Callable[[Any], T]) -> List[T]:
    """Parse every record of a list response.

    A non-list payload yields an empty list. Each element is parsed
    independently; malformed elements come back with default fields.
    """
    if not isinstance(raw, list):
        if raw not in (None, ""):
            logger.debug("Expected a JSON list from CLI", got=type(raw).__name__)
        return []
    return [parser(item) for item in raw]


def first_document(raw: Any) -> Optional[Dict[str, Any]]:
    """Return the first object of an inspect payload, verbatim."""
    if isinstance(raw, list):
        return raw[0] if raw and isinstance(raw[0], dict) else None
    if isinstance(raw, dict):
        return raw
    return None
