"""Change notification primitives.

ChangeEmitter fans a single event out to registered handlers. Handlers may
be plain callables or coroutine functions. Registration returns a
Subscription that detaches the handler when closed.
"""

import inspect
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import structlog

from ..models.resources import ResourceKind

logger = structlog.get_logger(__name__)


class Subscription:
    """Handle for a registered callback.

    Closing is idempotent. Usable as a context manager so the release
    happens on every exit path.
    """

    def __init__(self, release: Callable[[], None]):
        self._release: Optional[Callable[[], None]] = release

    @property
    def closed(self) -> bool:
        return self._release is None

    def close(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class SnapshotChanged:
    """Emitted after every successful refresh, even if content is identical."""

    kind: ResourceKind
    count: int
    refreshed_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ChangeEmitter:
    """Ordered list of handlers for one event source."""

    def __init__(self, name: str = ""):
        self._name = name
        self._handlers: List[Callable[[Any], Any]] = []
        self._disposed = False

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def register(self, handler: Callable[[Any], Any]) -> Subscription:
        """Register a handler and return its subscription."""
        if self._disposed:
            raise RuntimeError(f"Emitter {self._name or '<anonymous>'} is disposed")
        self._handlers.append(handler)

        def _release() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return Subscription(_release)

    async def fire(self, event: Any) -> None:
        """Deliver an event to every handler.

        A failing handler is logged and does not prevent delivery to the
        remaining handlers.
        """
        if self._disposed:
            return
        for handler in list(self._handlers):
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(
                    "Change handler failed",
                    emitter=self._name,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e),
                )

    def dispose(self) -> None:
        """Detach every handler. Later fires are no-ops."""
        self._disposed = True
        self._handlers.clear()
