# File: resquel/router.py
"""
Resquel - Router Builder
========================
Mounts one FastAPI endpoint per compiled route on an ``APIRouter``.

The endpoint reads the JSON body (POST / PUT only), builds the
``RequestContext``, runs the route's ``HookChain`` and renders
``RequestError`` subclasses as ``{"error": ..., "message": ...}``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Iterable, List

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from resquel.compiler import CompiledRoute
from resquel.context import RequestContext
from resquel.engine import ExecutionEngine
from resquel.errors import DatabaseError, PayloadError, RequestError
from resquel.hooks import HookChain

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.router")

Endpoint = Callable[[Request], Awaitable[Response]]


async def _read_json_body(request: Request) -> Any:
    if not await request.body():
        raise PayloadError("Request body must contain a 'data' object.")
    try:
        return await request.json()
    except ValueError as exc:
        raise PayloadError("Request body is not valid JSON.") from exc


def _make_endpoint(compiled: CompiledRoute, chain: HookChain) -> Endpoint:
    reads_body: bool = compiled.template.requires_payload

    async def endpoint(request: Request) -> Response:
        try:
            body: Any = await _read_json_body(request) if reads_body else None
            context: RequestContext = RequestContext(
                request=request,
                route=compiled.spec,
                params=dict(request.path_params),
                body=body,
            )
            return await chain(context)
        except RequestError as exc:
            if not isinstance(exc, DatabaseError):
                logger.info("%s %s rejected: %s", compiled.method, request.url.path, exc)
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    endpoint.__name__ = compiled.name
    endpoint.__doc__ = f"{compiled.template.kind.value} on '{compiled.spec.table}'."
    return endpoint


def build_router(
    routes: Iterable[CompiledRoute],
    executor: ExecutionEngine,
    **router_kwargs: Any,
) -> APIRouter:
    """Build an ``APIRouter`` with one handler per compiled route, in order."""
    router: APIRouter = APIRouter(**router_kwargs)

    for compiled in routes:
        chain: HookChain = HookChain(
            functools.partial(executor.execute, compiled.template),
            before=compiled.spec.before,
            after=compiled.spec.after,
        )
        router.add_api_route(
            compiled.path,
            _make_endpoint(compiled, chain),
            methods=[compiled.method],
            name=compiled.name,
            tags=[compiled.spec.table],
            response_class=JSONResponse,
        )
        logger.debug("Mounted %s %s (%r).", compiled.method, compiled.path, chain)

    return router


__all__: List[str] = ["build_router"]
