# File: resquel/hooks.py
"""
Resquel - Hook Chain Adapter
============================
Wraps a route's core operation in its ``before`` and ``after`` hooks::

    before[0] → before[1] → … → operation → after[0] → after[1] → …

A hook is called as ``hook(context, proceed)`` and may be a plain function
or a coroutine function. Calling ``proceed()`` lets the chain continue;
returning without calling it ends the chain. A hook that ends the chain
usually sets ``context.response`` first (an authorization hook answering
403, for example). Raising ``fastapi.HTTPException`` ends it as well.

Rules:
    - A before-hook that ends the chain skips the operation and every
      after-hook.
    - If the operation raises, after-hooks are skipped and the exception
      propagates; hooks are interceptors, not cleanup handlers.
    - Within one request the order is strictly sequential.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Sequence, Tuple

from starlette.responses import Response

from resquel.context import RequestContext, ResponseEnvelope
from resquel.models import Hook

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.hooks")

Operation = Callable[[RequestContext], Awaitable[ResponseEnvelope]]


class Proceed:
    """Continuation handed to a hook; call it to let the chain go on."""

    __slots__ = ("called",)

    def __init__(self) -> None:
        self.called: bool = False

    def __call__(self) -> None:
        self.called = True

    def __repr__(self) -> str:
        return f"<Proceed called={self.called}>"


async def run_hooks(hooks: Sequence[Hook], context: RequestContext) -> bool:
    """
    Run *hooks* in order. Returns ``False`` as soon as one of them ends the
    chain without calling its continuation.
    """
    for hook in hooks:
        proceed: Proceed = Proceed()
        outcome: Any = hook(context, proceed)
        if inspect.isawaitable(outcome):
            await outcome
        if not proceed.called:
            logger.debug(
                "Hook %s ended the chain for %s %s.",
                getattr(hook, "__name__", repr(hook)),
                context.route.method,
                context.route.path,
            )
            return False
    return True


class HookChain:
    """
    The three-stage pipeline for one compiled route.

    Built once at ``init()``; the hook tuples it holds never change.
    """

    __slots__ = ("before", "after", "operation")

    def __init__(
        self,
        operation: Operation,
        before: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
    ) -> None:
        self.operation: Operation = operation
        self.before: Tuple[Hook, ...] = tuple(before)
        self.after: Tuple[Hook, ...] = tuple(after)

    async def __call__(self, context: RequestContext) -> Response:
        if not await run_hooks(self.before, context):
            if context.response is not None:
                return context.response
            return Response(status_code=204)

        context.envelope = await self.operation(context)

        await run_hooks(self.after, context)
        if context.response is not None:
            return context.response
        # An after-hook may have cleared the envelope.
        return (context.envelope or ResponseEnvelope.empty()).to_response()

    def __repr__(self) -> str:
        return f"<HookChain before={len(self.before)} after={len(self.after)}>"


# ---------------------------------------------------------------------------
# Built-in hooks
# ---------------------------------------------------------------------------


def log_request(context: RequestContext, proceed: Proceed) -> None:
    """Log the incoming request and continue. Usable as ``resquel.hooks:log_request``."""
    logger.info(
        "%s %s → %s",
        context.request.method,
        context.request.url.path,
        context.route.route_name,
    )
    proceed()


__all__: List[str] = [
    "Operation",
    "Proceed",
    "run_hooks",
    "HookChain",
    "log_request",
]
