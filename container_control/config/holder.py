"""Owned holder for the live ExtensionConfig.

Components keep a reference to the holder, never a copy of the config,
and read ``holder.current`` at the moment they act. Changes are applied
by swapping the whole value and notifying subscribers.
"""

from typing import Callable, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..core.events import Subscription
from ..models.errors import ErrorDetail, ValidationError
from .extension import ExtensionConfig

logger = structlog.get_logger(__name__)

ConfigListener = Callable[[ExtensionConfig, ExtensionConfig], None]


class ConfigHolder:
    """Holds the current ExtensionConfig and notifies on replacement."""

    def __init__(
        self,
        initial: Optional[ExtensionConfig] = None,
        loader: Optional[Callable[[], ExtensionConfig]] = None,
    ):
        """Initialize the holder.

        Args:
            initial: Starting value. Loaded through ``loader`` when omitted.
            loader: Reads the external settings source; used by ``reload``.
        """
        if loader is None:
            from . import load_extension_config

            loader = load_extension_config
        self._loader = loader
        self._current = initial if initial is not None else loader()
        self._listeners: List[ConfigListener] = []

    @property
    def current(self) -> ExtensionConfig:
        return self._current

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: ConfigListener) -> Subscription:
        """Register ``listener(new, old)``; close the subscription to detach."""
        self._listeners.append(listener)

        def _release() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(_release)

    def replace(self, new: ExtensionConfig) -> bool:
        """Swap in a new config. Returns True if the value changed."""
        old = self._current
        if new == old:
            return False

        self._current = new
        logger.info(
            "Configuration replaced",
            changed=sorted(self._changed_fields(old, new)),
        )

        for listener in list(self._listeners):
            try:
                listener(new, old)
            except Exception as e:
                logger.error(
                    "Configuration listener failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                )
        return True

    def update(self, **changes) -> ExtensionConfig:
        """Validate a modified copy of the current config and install it."""
        merged = {**self._current.model_dump(), **changes}
        try:
            new = ExtensionConfig(**merged)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid configuration",
                details=[
                    ErrorDetail(
                        field=".".join(str(loc) for loc in err["loc"]),
                        message=err["msg"],
                        code=err["type"],
                    )
                    for err in e.errors()
                ],
            )
        self.replace(new)
        return self._current

    def reload(self) -> bool:
        """Re-read the external settings source."""
        return self.replace(self._loader())

    @staticmethod
    def _changed_fields(old: ExtensionConfig, new: ExtensionConfig) -> Dict[str, object]:
        old_values = old.model_dump()
        return {
            name: value
            for name, value in new.model_dump().items()
            if old_values.get(name) != value
        }
