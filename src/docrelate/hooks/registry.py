"""Hook registry for docrelate collections.

Each collection owns one HookRegistry. Hooks are stored per lifecycle
event and emitted sequentially in registration order.
"""

import functools
import logging
from collections.abc import Callable

from docrelate.hooks.types import HookEvent, HookFn, HookParams

logger = logging.getLogger(__name__)


class HookRegistry:
    """Ordered before/after callbacks for a single collection.

    Example:
        registry = HookRegistry()
        registry.register(HookEvent.BEFORE_DELETE_ONE, check_references)
        await registry.emit(HookEvent.BEFORE_DELETE_ONE, params)
    """

    def __init__(self) -> None:
        self._hooks: dict[HookEvent, list[HookFn]] = {}

    def register(self, event: HookEvent | str, hook_fn: HookFn) -> None:
        """Append a hook function to an event's listener list.

        Args:
            event: Lifecycle event, as a HookEvent or its string value
            hook_fn: Async function receiving the call's HookParams
        """
        self._hooks.setdefault(HookEvent(event), []).append(hook_fn)

    on = register

    def get(self, event: HookEvent | str) -> list[HookFn]:
        """Get the hooks registered for an event, in registration order."""
        return list(self._hooks.get(HookEvent(event), []))

    def is_registered(self, event: HookEvent | str) -> bool:
        """Check if any hook listens on an event."""
        return bool(self._hooks.get(HookEvent(event)))

    def clear(self) -> None:
        """Remove all hooks. Primarily for testing."""
        self._hooks.clear()

    async def emit(self, event: HookEvent, params: HookParams) -> None:
        """Run every hook for an event, one after another.

        The first exception stops the emit and propagates to the caller
        of the mutating operation.
        """
        for hook_fn in list(self._hooks.get(event, [])):
            await hook_fn(params)


def skippable_hook(option: str) -> Callable[[HookFn], HookFn]:
    """Build a decorator that skips a hook when a call disables `option`.

    A mutating call passing options={option: False} bypasses every hook
    wrapped with the returned decorator.
    """
    return functools.partial(_skip_when_disabled, option)


def _skip_when_disabled(option: str, hook_fn: HookFn) -> HookFn:
    @functools.wraps(hook_fn)
    async def wrapper(params: HookParams) -> None:
        if params.options.get(option) is False:
            logger.debug("Skipping hook %s: %s disabled", hook_fn.__name__, option)
            return
        await hook_fn(params)

    return wrapper


relating_hook = skippable_hook("relating")
