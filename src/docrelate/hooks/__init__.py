"""docrelate collection lifecycle hooks.

Collections emit a before and an after event around every mutating call:
- before hooks run before storage is touched and may abort the call
- after hooks run once the mutation has been applied

Usage:
    from docrelate.hooks import HookEvent, HookParams

    async def log_delete(params: HookParams) -> None:
        logger.info("deleting %s", params.condition)

    collection.on(HookEvent.BEFORE_DELETE_ONE, log_delete)
"""

from docrelate.hooks.registry import HookRegistry, relating_hook, skippable_hook
from docrelate.hooks.types import HookEvent, HookFn, HookParams, OperationContext

__all__ = [
    "HookEvent",
    "HookFn",
    "HookParams",
    "HookRegistry",
    "OperationContext",
    "relating_hook",
    "skippable_hook",
]
