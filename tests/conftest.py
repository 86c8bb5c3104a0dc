"""Pytest configuration and shared fixtures."""

import asyncio
import os
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Keep tests independent of a developer's shell and .env
os.environ.pop("API_KEY", None)
os.environ.setdefault("CONTAINER_BINARY", "container")
os.environ.setdefault("LOG_FORMAT", "console")

from container_control.config.extension import ExtensionConfig
from container_control.config.gateway import GatewayConfig
from container_control.config.holder import ConfigHolder
from container_control.models.resources import (
    Container,
    ContainerStatus,
    Image,
    Network,
    Volume,
)
from container_control.models.results import OperationResult


@pytest.fixture
def extension_config() -> ExtensionConfig:
    """Config with polling off so tests drive refreshes explicitly."""
    return ExtensionConfig(binary_path="container", poll_interval_ms=0)


@pytest.fixture
def config_holder(extension_config) -> ConfigHolder:
    return ConfigHolder(initial=extension_config, loader=lambda: extension_config)


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        command_timeout_seconds=5,
        long_running_timeout_seconds=30,
        max_output_bytes=4096,
    )


@pytest.fixture
def mock_gateway(gateway_config):
    """Gateway double; set ``execute.return_value`` per test."""
    gateway = MagicMock()
    gateway.limits = gateway_config
    gateway.execute = AsyncMock(return_value=OperationResult.ok(""))
    return gateway


@pytest.fixture
def sample_containers() -> List[Container]:
    return [
        Container(id="abc123", name="web", image="nginx:latest", status=ContainerStatus.RUNNING),
        Container(id="def456", name="db", image="postgres:16", status=ContainerStatus.STOPPED),
    ]


@pytest.fixture
def sample_images() -> List[Image]:
    return [
        Image(id="sha256:1111", repository="nginx", tag="latest", digest="sha256:1111"),
        Image(id="sha256:2222", repository="ghcr.io/acme/app", tag="v2"),
    ]


@pytest.fixture
def sample_volumes() -> List[Volume]:
    return [Volume(name="data", driver="local"), Volume(name="cache")]


@pytest.fixture
def sample_networks() -> List[Network]:
    return [Network(id="net1", name="default", driver="nat")]


@pytest.fixture
def mock_cli(mock_gateway, config_holder, sample_containers, sample_images, sample_volumes, sample_networks):
    """ContainerCli double whose listings succeed with the sample data."""
    cli = MagicMock()
    cli.config_holder = config_holder
    cli.list_containers = AsyncMock(return_value=OperationResult.ok(sample_containers))
    cli.list_images = AsyncMock(return_value=OperationResult.ok(sample_images))
    cli.list_volumes = AsyncMock(return_value=OperationResult.ok(sample_volumes))
    cli.list_networks = AsyncMock(return_value=OperationResult.ok(sample_networks))
    return cli


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process fed from byte strings.

    Leaving ``stdout`` as ``None`` keeps the stream open forever, which
    lets tests exercise the timeout path.
    """

    def __init__(
        self,
        stdout: Optional[bytes] = b"",
        stderr: bytes = b"",
        returncode: int = 0,
        pid: int = 4242,
    ):
        self.pid = pid
        self.returncode: Optional[int] = None
        self._final_code = returncode
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        if stdout is not None:
            self.stdout.feed_data(stdout)
            self.stdout.feed_eof()
        self.stderr.feed_data(stderr)
        self.stderr.feed_eof()
        self.killed = False
        self.kill = MagicMock(side_effect=self._mark_killed)

    def _mark_killed(self):
        self.killed = True

    async def wait(self) -> int:
        if self.killed:
            self.returncode = -9
        else:
            self.returncode = self._final_code
        return self.returncode


@pytest.fixture
def fake_process():
    """Factory for FakeProcess instances (call inside a running loop)."""
    return FakeProcess
