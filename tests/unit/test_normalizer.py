"""Unit tests for the CLI response normalizer."""

import pytest

from container_control.models.resources import ContainerStatus, MountType, Protocol, _Resource
from container_control.services.cli.normalizer import (
    first_document,
    format_size,
    normalize_status,
    parse_container,
    parse_image,
    parse_list,
    parse_network,
    parse_volume,
    split_reference,
)

UNITS = {"B": 1, "KiB": 1024, "MiB": 1024 ** 2, "GiB": 1024 ** 3, "TiB": 1024 ** 4}


class TestStatus:
    """Test container status normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Running", ContainerStatus.RUNNING),
            ("RUNNING", ContainerStatus.RUNNING),
            ("exited", ContainerStatus.STOPPED),
            ("stopped", ContainerStatus.STOPPED),
            ("created", ContainerStatus.CREATED),
            ("paused", ContainerStatus.PAUSED),
            ("", ContainerStatus.UNKNOWN),
            ("restarting", ContainerStatus.UNKNOWN),
            (None, ContainerStatus.UNKNOWN),
            (42, ContainerStatus.UNKNOWN),
        ],
    )
    def test_mapping(self, raw, expected):
        assert normalize_status(raw) == expected


class TestReferences:
    """Test image reference decomposition."""

    @pytest.mark.parametrize(
        "reference,expected",
        [
            ("nginx:latest", ("nginx", "latest")),
            ("docker.io/library/nginx:1.25", ("nginx", "1.25")),
            ("myregistry.local:5000/app:v2", ("myregistry.local:5000/app", "v2")),
            ("myimage", ("myimage", "latest")),
            ("docker.io/acme/tool:1", ("acme/tool", "1")),
            ("myregistry.local:5000/app", ("myregistry.local:5000/app", "latest")),
        ],
    )
    def test_split(self, reference, expected):
        assert split_reference(reference) == expected


class TestFormatSize:
    """Test IEC size formatting."""

    def test_zero(self):
        assert format_size(0) == "0 B"

    @pytest.mark.parametrize(
        "size,expected",
        [
            (1, "1.0 B"),
            (1023, "1023.0 B"),
            (1024, "1.0 KiB"),
            (1536, "1.5 KiB"),
            (1024 ** 2, "1.0 MiB"),
            (3 * 1024 ** 3, "3.0 GiB"),
            (5 * 1024 ** 4, "5.0 TiB"),
            (2048 * 1024 ** 4, "2048.0 TiB"),
        ],
    )
    def test_units(self, size, expected):
        assert format_size(size) == expected

    @pytest.mark.parametrize("size", [1, 999, 4097, 123456, 98765432, 7 * 1024 ** 3 + 12345])
    def test_parses_back_within_rounding(self, size):
        value, unit = format_size(size).split()
        scale = UNITS[unit]
        assert abs(float(value) * scale - size) <= 0.05 * scale


class TestParseContainer:
    """Test container record parsing."""

    def test_native_shape(self):
        raw = {
            "status": "running",
            "configuration": {
                "id": "web",
                "image": {"reference": "docker.io/library/nginx:latest"},
                "publishedPorts": [
                    {"hostAddress": "0.0.0.0", "hostPort": 8080, "containerPort": 80, "proto": "tcp"},
                    {"hostPort": 5353, "containerPort": 53, "proto": "udp"},
                ],
                "mounts": [
                    {"type": {"virtiofs": {}}, "source": "/Users/me/src", "destination": "/src"},
                    {"type": {"volume": {"name": "data"}}, "source": "data", "destination": "/data", "options": ["ro"]},
                ],
                "labels": {"app": "shop"},
            },
        }
        container = parse_container(raw)

        assert container.id == "web"
        assert container.name == "web"
        assert container.image == "docker.io/library/nginx:latest"
        assert container.status == ContainerStatus.RUNNING
        assert container.ports[0].host_ip == "0.0.0.0"
        assert container.ports[0].host_port == 8080
        assert container.ports[1].protocol == Protocol.UDP
        assert container.mounts[0].type == MountType.BIND
        assert container.mounts[1].type == MountType.VOLUME
        assert container.mounts[1].readonly is True
        assert container.labels == {"app": "shop"}

    def test_docker_style_shape(self):
        raw = {
            "Id": "abc123",
            "Names": ["/db"],
            "Image": "postgres:16",
            "State": "exited",
            "Created": 1700000000,
            "Ports": [{"PrivatePort": 5432, "PublicPort": 5432, "HostPort": 15432, "Type": "tcp"}],
        }
        container = parse_container(raw)

        assert container.id == "abc123"
        assert container.name == "db"
        assert container.image == "postgres:16"
        assert container.status == ContainerStatus.STOPPED
        assert container.created == "1700000000"
        assert container.ports[0].host_port == 15432
        assert container.ports[0].container_port == 5432

    def test_missing_optionals_stay_absent(self):
        container = parse_container({"configuration": {"id": "x"}, "status": "running"})
        assert container.ports is None
        assert container.mounts is None
        assert container.labels is None

    def test_unknown_mount_type_dropped(self):
        raw = {
            "configuration": {
                "id": "x",
                "mounts": [
                    {"type": "nfs", "source": "srv:/x", "destination": "/x"},
                    {"type": "tmpfs", "source": "", "destination": "/tmp"},
                ],
            }
        }
        container = parse_container(raw)
        assert [m.type for m in container.mounts] == [MountType.TMPFS]

    def test_malformed_record_degrades(self):
        container = parse_container({"configuration": "garbage", "status": ["x"]})
        assert container.id == ""
        assert container.status == ContainerStatus.UNKNOWN
        assert container.image == "unknown"


class TestParseImage:
    """Test image record parsing."""

    def test_native_shape(self):
        raw = {
            "reference": "docker.io/library/alpine:3.19",
            "descriptor": {"digest": "sha256:abcd", "size": 3 * 1024 ** 2, "mediaType": "x"},
        }
        image = parse_image(raw)

        assert image.repository == "alpine"
        assert image.tag == "3.19"
        assert image.digest == "sha256:abcd"
        assert image.id == "sha256:abcd"
        assert image.size_bytes == 3 * 1024 ** 2
        assert image.size == "3.0 MiB"

    def test_docker_style_shape(self):
        raw = {"Id": "sha256:ffff", "RepoTags": ["myregistry.local:5000/app:v2"], "Size": "2048"}
        image = parse_image(raw)

        assert image.id == "sha256:ffff"
        assert image.repository == "myregistry.local:5000/app"
        assert image.tag == "v2"
        assert image.size == "2.0 KiB"

    def test_missing_size(self):
        assert parse_image({"reference": "busybox"}).size == "0 B"

    def test_identity_includes_separate_digest(self):
        image = parse_image({"Id": "sha256:ffff", "RepoTags": ["redis:7"], "Digest": "sha256:beef"})
        assert image.identity_keys == ("sha256:ffff", "redis:7", "sha256:beef")

    def test_identity_without_separate_digest(self):
        image = parse_image({"reference": "alpine:3", "descriptor": {"digest": "sha256:abcd"}})
        assert image.identity_keys == ("sha256:abcd", "alpine:3")

    def test_resource_base_is_abstract(self):
        with pytest.raises(TypeError):
            _Resource()


class TestParseVolumeAndNetwork:
    """Test volume and network record parsing."""

    def test_volume_camel_case(self):
        volume = parse_volume({"name": "data", "driver": "local", "source": "/var/lib/data", "createdAt": "2024-01-01"})
        assert volume.name == "data"
        assert volume.mountpoint == "/var/lib/data"
        assert volume.created == "2024-01-01"

    def test_volume_title_case(self):
        volume = parse_volume({"Name": "cache", "Mountpoint": "/m", "Scope": "local", "Labels": {"a": "b"}})
        assert volume.name == "cache"
        assert volume.mountpoint == "/m"
        assert volume.scope == "local"
        assert volume.labels == {"a": "b"}
        assert volume.display_driver == "local"

    def test_network_native_status_subnet(self):
        network = parse_network(
            {"id": "default", "config": {"mode": "nat"}, "status": {"address": "192.168.64.0/24", "gateway": "192.168.64.1"}}
        )
        assert network.id == "default"
        assert network.name == "default"
        assert network.driver == "nat"
        assert network.ipam.config[0].subnet == "192.168.64.0/24"
        assert network.ipam.config[0].gateway == "192.168.64.1"

    def test_network_docker_ipam(self):
        network = parse_network(
            {
                "Id": "n1",
                "Name": "backend",
                "Driver": "bridge",
                "Internal": True,
                "IPAM": {"Driver": "default", "Config": [{"Subnet": "10.0.0.0/24", "Gateway": "10.0.0.1"}]},
            }
        )
        assert network.name == "backend"
        assert network.internal is True
        assert network.ipam.driver == "default"
        assert network.ipam.config[0].subnet == "10.0.0.0/24"

    def test_network_without_ipam(self):
        assert parse_network({"id": "n"}).ipam is None


class TestParseList:
    """Test list-level robustness."""

    def test_malformed_record_keeps_list_length(self):
        raw = [
            {"configuration": {"id": "a"}, "status": "running"},
            "not an object",
            {"configuration": {"id": "c"}, "status": "stopped"},
        ]
        containers = parse_list(raw, parse_container)

        assert len(containers) == 3
        assert containers[1].id == ""
        assert containers[1].status == ContainerStatus.UNKNOWN
        assert containers[2].status == ContainerStatus.STOPPED

    @pytest.mark.parametrize(
        "parser,bad_record",
        [
            (parse_container, {"Id": "c2", "Names": "db"}),
            (parse_container, {"Id": "c2", "Ports": {"80/tcp": 8080}}),
            (parse_container, {"Id": "c2", "Labels": ["a=b"]}),
            (parse_container, {"Id": "c2", "State": 7, "Mounts": "none"}),
            (parse_container, {"configuration": {"id": "c2", "publishedPorts": 3, "mounts": [5, None]}}),
            (parse_image, {"Id": "i2", "RepoTags": "nginx:latest", "Size": [1]}),
            (parse_image, {"reference": 12, "descriptor": "sha256:x", "labels": "a"}),
            (parse_volume, {"Name": ["v"], "Labels": ["a=b"], "Driver": {}}),
            (parse_network, {"id": "n2", "name": "n2", "ipam": {"driver": "default", "config": 5}}),
            (parse_network, {"id": "n2", "ipam": {"config": True}}),
            (parse_network, {"id": "n2", "IPAM": {"Config": "10.0.0.0/24"}}),
            (parse_network, {"id": "n2", "IPAM": "default", "status": ["up"], "config": 1}),
        ],
    )
    def test_wrong_typed_nested_field_keeps_list_length(self, parser, bad_record):
        raw = [{"id": "a", "name": "a"}, bad_record, {"id": "c", "name": "c"}]
        assert len(parse_list(raw, parser)) == 3

    def test_ipam_wrong_typed_config_degrades(self):
        networks = parse_list(
            [
                {"id": "n1", "name": "n1"},
                {"id": "n2", "name": "n2", "ipam": {"driver": "default", "config": 5}},
                {"id": "n3", "name": "n3"},
            ],
            parse_network,
        )

        assert [n.id for n in networks] == ["n1", "n2", "n3"]
        assert networks[1].ipam.driver == "default"
        assert networks[1].ipam.config == []

    def test_ipam_skips_non_object_blocks(self):
        network = parse_network(
            {"id": "n", "IPAM": {"Config": ["10.0.0.0/24", {"Subnet": "10.1.0.0/24"}, 3]}}
        )
        assert [b.subnet for b in network.ipam.config] == ["10.1.0.0/24"]

    @pytest.mark.parametrize("raw", [None, "", {"id": "x"}, 5])
    def test_non_list_payload_is_empty(self, raw):
        assert parse_list(raw, parse_volume) == []

    def test_first_document(self):
        assert first_document([{"id": "a"}, {"id": "b"}]) == {"id": "a"}
        assert first_document({"id": "a"}) == {"id": "a"}
        assert first_document([]) is None
        assert first_document("") is None
