"""Unit tests for ResourceCache refresh scheduling."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from container_control.config.extension import ExtensionConfig
from container_control.config.holder import ConfigHolder
from container_control.models.resources import Image, ResourceKind
from container_control.models.results import OperationResult
from container_control.services.cache.resource_cache import CacheState, ResourceCache


@pytest.fixture
def polling_holder():
    config = ExtensionConfig(poll_interval_ms=20)
    return ConfigHolder(initial=config, loader=lambda: config)


class BlockingFetcher:
    """Fetcher that waits on an event before answering."""

    def __init__(self, data):
        self.data = data
        self.calls = 0
        self.gate = asyncio.Event()

    async def __call__(self):
        self.calls += 1
        await self.gate.wait()
        return OperationResult.ok(self.data)


class TestRefresh:
    """Test snapshot replacement and failure handling."""

    @pytest.mark.asyncio
    async def test_initial_state(self, config_holder):
        cache = ResourceCache(ResourceKind.VOLUME, AsyncMock(), config_holder)
        assert cache.state == CacheState.UNINITIALIZED
        assert cache.snapshot == []

    @pytest.mark.asyncio
    async def test_refresh_populates(self, config_holder, sample_volumes):
        fetcher = AsyncMock(return_value=OperationResult.ok(sample_volumes))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, config_holder)

        result = await cache.refresh()

        assert result.success is True
        assert cache.state == CacheState.POPULATED
        assert [v.name for v in cache.snapshot] == ["data", "cache"]
        assert cache.stats()["refreshed_at"] is not None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot_and_does_not_notify(
        self, config_holder, sample_volumes
    ):
        fetcher = AsyncMock(
            side_effect=[
                OperationResult.ok(sample_volumes),
                OperationResult.fail("Error: daemon not running", exit_code=1),
            ]
        )
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, config_holder)
        events = []
        cache.subscribe(events.append)

        await cache.refresh()
        result = await cache.refresh()

        assert result.success is False
        assert result.error == "Error: daemon not running"
        assert len(cache.snapshot) == 2
        assert len(events) == 1
        stats = cache.stats()
        assert stats["failure_count"] == 1
        assert stats["last_error"] == "Error: daemon not running"

    @pytest.mark.asyncio
    async def test_notifies_even_when_content_identical(self, config_holder, sample_volumes):
        fetcher = AsyncMock(return_value=OperationResult.ok(sample_volumes))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, config_holder)
        events = []
        cache.subscribe(events.append)

        await cache.refresh()
        await cache.refresh()

        assert len(events) == 2
        assert events[0].kind == ResourceKind.VOLUME
        assert events[1].count == 2

    @pytest.mark.asyncio
    async def test_fetcher_exception_becomes_failure(self, config_holder):
        fetcher = AsyncMock(side_effect=RuntimeError("boom"))
        cache = ResourceCache(ResourceKind.IMAGE, fetcher, config_holder)

        result = await cache.refresh()

        assert result.success is False
        assert "boom" in result.error
        assert cache.state == CacheState.UNINITIALIZED


class TestCoalescing:
    """Test that at most one refresh runs per cache."""

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_fetch(self, config_holder, sample_networks):
        fetcher = BlockingFetcher(sample_networks)
        cache = ResourceCache(ResourceKind.NETWORK, fetcher, config_holder)

        first = asyncio.create_task(cache.refresh())
        second = asyncio.create_task(cache.refresh())
        await asyncio.sleep(0)
        assert cache.is_refreshing is True

        fetcher.gate.set()
        results = await asyncio.gather(first, second)

        assert fetcher.calls == 1
        assert all(r.success for r in results)
        assert cache.is_refreshing is False

    @pytest.mark.asyncio
    async def test_tick_skipped_while_refresh_in_flight(self, config_holder, sample_networks):
        fetcher = BlockingFetcher(sample_networks)
        cache = ResourceCache(ResourceKind.NETWORK, fetcher, config_holder)

        pending = asyncio.create_task(cache.refresh())
        await asyncio.sleep(0)
        cache._on_tick()
        cache._on_tick()

        fetcher.gate.set()
        await pending

        assert fetcher.calls == 1
        assert cache.stats()["skipped_ticks"] == 2


class TestLazyLoad:
    """Test the first-read behaviour of get_snapshot."""

    @pytest.mark.asyncio
    async def test_first_read_refreshes_once(self, config_holder, sample_containers):
        fetcher = AsyncMock(return_value=OperationResult.ok(sample_containers))
        cache = ResourceCache(ResourceKind.CONTAINER, fetcher, config_holder)

        first = await cache.get_snapshot()
        second = await cache.get_snapshot()

        assert len(first) == len(second) == 2
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_first_read_not_retried_on_every_read(self, config_holder):
        fetcher = AsyncMock(return_value=OperationResult.fail("missing"))
        cache = ResourceCache(ResourceKind.CONTAINER, fetcher, config_holder)

        assert await cache.get_snapshot() == []
        assert await cache.get_snapshot() == []
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_find_by_any_identity_key(self, config_holder, mock_cli):
        cache = ResourceCache(ResourceKind.CONTAINER, mock_cli.list_containers, config_holder)

        assert (await cache.find("web")).id == "abc123"
        assert (await cache.find("def456")).name == "db"
        assert await cache.find("nope") is None

    @pytest.mark.asyncio
    async def test_find_image_by_reference(self, config_holder, mock_cli):
        cache = ResourceCache(ResourceKind.IMAGE, mock_cli.list_images, config_holder)
        assert (await cache.find("ghcr.io/acme/app:v2")).id == "sha256:2222"

    @pytest.mark.asyncio
    async def test_find_image_by_digest(self, config_holder):
        image = Image(id="sha256:9999", repository="redis", tag="7", digest="sha256:beef")
        fetcher = AsyncMock(return_value=OperationResult.ok([image]))
        cache = ResourceCache(ResourceKind.IMAGE, fetcher, config_holder)

        assert await cache.find("sha256:beef") == image
        assert await cache.find("sha256:9999") == image


class TestPolling:
    """Test the background timer."""

    @pytest.mark.asyncio
    async def test_timer_refreshes(self, polling_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, polling_holder)
        cache.start()
        try:
            assert cache.is_polling is True
            await asyncio.sleep(0.15)
            assert fetcher.await_count >= 2
        finally:
            cache.dispose()

    @pytest.mark.asyncio
    async def test_polling_disabled_with_zero_interval(self, config_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, config_holder)
        cache.start()

        await asyncio.sleep(0.05)

        assert cache.is_polling is False
        fetcher.assert_not_awaited()
        cache.dispose()

    @pytest.mark.asyncio
    async def test_interval_change_restarts_timer(self, polling_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, polling_holder)
        cache.start()
        first_timer = cache._timer

        polling_holder.update(poll_interval_ms=30)
        assert cache.is_polling is True
        assert cache._timer is not first_timer

        polling_holder.update(poll_interval_ms=0)
        assert cache.is_polling is False
        cache.dispose()

    @pytest.mark.asyncio
    async def test_no_fetches_after_dispose(self, polling_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(ResourceKind.VOLUME, fetcher, polling_holder)
        cache.start()
        await asyncio.sleep(0.07)

        cache.dispose()
        calls = fetcher.await_count
        await asyncio.sleep(0.08)

        assert fetcher.await_count == calls
        assert cache.is_polling is False


class TestConfigTriggers:
    """Test refreshes driven by configuration changes."""

    @staticmethod
    def binary_changed(new, old):
        return new.binary_path != old.binary_path

    @pytest.mark.asyncio
    async def test_matching_change_triggers_refresh(self, config_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(
            ResourceKind.IMAGE, fetcher, config_holder, refresh_on_change=self.binary_changed
        )
        cache.start()

        config_holder.update(default_shell="/bin/bash")
        assert cache.is_refreshing is False

        config_holder.update(binary_path="/usr/local/bin/container")
        assert cache.is_refreshing is True
        await cache.refresh()

        assert fetcher.await_count == 1
        cache.dispose()

    @pytest.mark.asyncio
    async def test_change_during_refresh_queues_one_rerun(self, config_holder):
        fetcher = BlockingFetcher([])
        cache = ResourceCache(
            ResourceKind.IMAGE, fetcher, config_holder, refresh_on_change=self.binary_changed
        )
        cache.start()

        pending = asyncio.create_task(cache.refresh())
        await asyncio.sleep(0)
        config_holder.update(binary_path="/opt/a/container")
        config_holder.update(binary_path="/opt/b/container")

        fetcher.gate.set()
        await pending
        await cache.refresh()

        assert fetcher.calls == 2
        cache.dispose()

    @pytest.mark.asyncio
    async def test_dispose_detaches_from_holder(self, config_holder):
        cache = ResourceCache(ResourceKind.IMAGE, AsyncMock(), config_holder)
        cache.start()
        assert config_holder.listener_count == 1

        cache.dispose()
        assert config_holder.listener_count == 0


class TestDispose:
    """Test teardown."""

    @pytest.mark.asyncio
    async def test_dispose_is_idempotent_and_safe_unstarted(self, config_holder):
        cache = ResourceCache(ResourceKind.NETWORK, AsyncMock(), config_holder)
        cache.dispose()
        cache.dispose()
        assert cache.disposed is True

    @pytest.mark.asyncio
    async def test_refresh_after_dispose_fails(self, config_holder):
        fetcher = AsyncMock(return_value=OperationResult.ok([]))
        cache = ResourceCache(ResourceKind.NETWORK, fetcher, config_holder)
        cache.dispose()

        result = await cache.refresh()

        assert result.success is False
        fetcher.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispose_during_refresh(self, config_holder):
        fetcher = BlockingFetcher([])
        cache = ResourceCache(ResourceKind.NETWORK, fetcher, config_holder)

        pending = asyncio.create_task(cache.refresh())
        await asyncio.sleep(0)
        cache.dispose()
        result = await pending

        assert result.success is False
        assert cache.state == CacheState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_subscribe_after_dispose_raises(self, config_holder):
        cache = ResourceCache(ResourceKind.NETWORK, AsyncMock(), config_holder)
        cache.dispose()
        with pytest.raises(RuntimeError):
            cache.subscribe(lambda event: None)
