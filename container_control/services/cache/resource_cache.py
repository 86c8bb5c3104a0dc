"""Per-kind resource snapshot with a background refresh timer.

Each cache owns the latest full list for one ResourceKind. A refresh
replaces the snapshot wholesale and notifies subscribers; a failed refresh
leaves the previous snapshot in place and notifies no one. At most one
refresh runs per cache at a time: timer ticks that land while a refresh is
in flight are skipped, and explicit ``refresh()`` calls join the running
one.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Tuple,
    TypeVar,
)

import structlog

from ...config.extension import ExtensionConfig
from ...config.holder import ConfigHolder
from ...core.events import ChangeEmitter, SnapshotChanged, Subscription
from ...models.resources import ResourceKind
from ...models.results import OperationResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[OperationResult[List[T]]]]
ChangePredicate = Callable[[ExtensionConfig, ExtensionConfig], bool]


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    POPULATED = "populated"


class ResourceCache(Generic[T]):
    """Snapshot cache and refresh scheduler for one resource kind."""

    def __init__(
        self,
        kind: ResourceKind,
        fetcher: Fetcher,
        config_holder: ConfigHolder,
        refresh_on_change: Optional[ChangePredicate] = None,
    ):
        """Initialize the cache.

        Args:
            kind: Resource kind this cache holds
            fetcher: Coroutine function returning the full list for ``kind``
            config_holder: Live configuration (poll interval is read from it)
            refresh_on_change: Predicate over (new, old) config; when true a
                configuration change triggers a refresh
        """
        self._kind = kind
        self._fetcher = fetcher
        self._config_holder = config_holder
        self._refresh_on_change = refresh_on_change

        self._snapshot: Tuple[T, ...] = ()
        self._state = CacheState.UNINITIALIZED
        self._initial_load_done = False
        self._refreshed_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

        self._emitter = ChangeEmitter(f"{kind.value}-cache")
        self._config_subscription: Optional[Subscription] = None

        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._rerun_requested = False
        self._started = False
        self._disposed = False

        # Counters for status reporting
        self._refresh_count = 0
        self._failure_count = 0
        self._skipped_ticks = 0

    @property
    def kind(self) -> ResourceKind:
        return self._kind

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def snapshot(self) -> List[T]:
        """Current snapshot. Never triggers a refresh."""
        return list(self._snapshot)

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None

    @property
    def is_polling(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        """Attach to the config holder and start the poll timer.

        Must be called from a running event loop. Calling twice is a no-op.
        """
        if self._started or self._disposed:
            return
        self._started = True
        self._config_subscription = self._config_holder.subscribe(self._on_config_change)
        self.restart_timer()

    def restart_timer(self) -> None:
        """Tear down the current timer and start one at the configured interval."""
        self._cancel_timer()
        if self._disposed:
            return

        config = self._config_holder.current
        if not config.polling_enabled:
            logger.info("Polling disabled", kind=self._kind.value)
            return

        self._timer = asyncio.create_task(self._poll_loop(config.poll_interval_seconds))
        logger.debug(
            "Poll timer started",
            kind=self._kind.value,
            interval_ms=config.poll_interval_ms,
        )

    async def refresh(self) -> OperationResult[List[T]]:
        """Refresh now, or join the refresh already in flight.

        Unlike timer-driven refreshes, the caller sees the failure.
        """
        if self._disposed:
            return OperationResult.fail(f"{self._kind.value} cache is disposed")

        task = self._inflight
        if task is None:
            task = self._start_refresh()
        else:
            logger.debug("Joining in-flight refresh", kind=self._kind.value)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and self._disposed:
                return OperationResult.fail(f"{self._kind.value} cache is disposed")
            raise

    async def get_snapshot(self) -> List[T]:
        """Current snapshot, loading it once if nothing has been read yet."""
        if not self._initial_load_done and not self._disposed:
            await self.refresh()
        return list(self._snapshot)

    async def find(self, key: str) -> Optional[T]:
        """Resolve a resource by any of its identity keys."""
        for item in await self.get_snapshot():
            if key in item.identity_keys:
                return item
        return None

    def subscribe(self, handler: Callable[[SnapshotChanged], Any]) -> Subscription:
        """Register for SnapshotChanged events."""
        return self._emitter.register(handler)

    def stats(self) -> Dict[str, Any]:
        return {
            "kind": self._kind.value,
            "state": self._state.value,
            "count": len(self._snapshot),
            "refreshed_at": self._refreshed_at.isoformat() if self._refreshed_at else None,
            "refreshing": self.is_refreshing,
            "polling": self.is_polling,
            "refresh_count": self._refresh_count,
            "failure_count": self._failure_count,
            "skipped_ticks": self._skipped_ticks,
            "last_error": self._last_error,
        }

    def dispose(self) -> None:
        """Stop the timer, cancel any refresh and detach every subscriber.

        Safe to call more than once and on a cache that was never started.
        """
        if self._disposed:
            return
        self._disposed = True

        self._cancel_timer()
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None
        if self._config_subscription is not None:
            self._config_subscription.close()
            self._config_subscription = None
        self._emitter.dispose()

        logger.debug("Cache disposed", kind=self._kind.value)

    # ---------------------------------------------------------------------

    def _start_refresh(self) -> asyncio.Task:
        self._inflight = asyncio.create_task(self._do_refresh())
        return self._inflight

    async def _do_refresh(self) -> OperationResult[List[T]]:
        try:
            try:
                result = await self._fetcher()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Refresh raised", kind=self._kind.value, error=str(e))
                result = OperationResult.fail(f"Refresh of {self._kind.plural} failed: {e}")

            self._initial_load_done = True

            if not result.success:
                self._failure_count += 1
                self._last_error = result.error
                logger.warning(
                    "Refresh failed, keeping previous snapshot",
                    kind=self._kind.value,
                    error=result.error,
                    exit_code=result.exit_code,
                )
                return result

            self._snapshot = tuple(result.data or ())
            self._state = CacheState.POPULATED
            self._refreshed_at = datetime.now(timezone.utc)
            self._refresh_count += 1
            self._last_error = None
            logger.debug("Refreshed snapshot", kind=self._kind.value, count=len(self._snapshot))

            await self._emitter.fire(
                SnapshotChanged(
                    kind=self._kind,
                    count=len(self._snapshot),
                    refreshed_at=self._refreshed_at,
                )
            )
            return result
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None
            if self._rerun_requested and not self._disposed:
                self._rerun_requested = False
                self._start_refresh()

    async def _poll_loop(self, interval: float) -> None:
        """Fire a refresh every ``interval`` seconds until cancelled."""
        while not self._disposed:
            try:
                await asyncio.sleep(interval)
                self._on_tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Poll loop error", kind=self._kind.value, error=str(e))

    def _on_tick(self) -> None:
        if self._inflight is not None:
            # Skip rather than queue: one subprocess per kind at most
            self._skipped_ticks += 1
            logger.debug("Refresh in flight, skipping tick", kind=self._kind.value)
            return
        self._start_refresh()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_config_change(self, new: ExtensionConfig, old: ExtensionConfig) -> None:
        if new.poll_interval_ms != old.poll_interval_ms:
            logger.info(
                "Poll interval changed, restarting timer",
                kind=self._kind.value,
                interval_ms=new.poll_interval_ms,
            )
            self.restart_timer()

        if self._refresh_on_change is not None and self._refresh_on_change(new, old):
            if self._inflight is not None:
                # The running refresh used the old settings
                self._rerun_requested = True
            else:
                self._start_refresh()
