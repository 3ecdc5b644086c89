# File: resquel/engine.py
"""
Resquel - Execution Engine
==========================
Runs a compiled route's query template for one request.

Each request gets exactly one transaction (``AsyncEngine.begin()``): the
statement plus, for the re-fetch family, the read-back of the written row.
A driver failure rolls the transaction back and is raised as
``DatabaseError``; nothing is retried, since repeating a non-idempotent
write could apply it twice.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from resquel.compiler import QueryKind, QueryTemplate
from resquel.context import RequestContext, ResponseEnvelope
from resquel.errors import DatabaseError
from resquel.normalizers import ResultNormalizer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.engine")

_Handler = Callable[
    [AsyncConnection, QueryTemplate, Any, Optional[Mapping[str, Any]]],
    Awaitable[ResponseEnvelope],
]


class ExecutionEngine:
    """
    Executes query templates through a shared ``AsyncEngine``.

    The engine and its pool belong to SQLAlchemy; a connection is only held
    for the duration of one request's transaction.
    """

    def __init__(self, engine: AsyncEngine, normalizer: ResultNormalizer) -> None:
        self._engine: AsyncEngine = engine
        self._normalizer: ResultNormalizer = normalizer
        self._handlers: Dict[QueryKind, _Handler] = {
            QueryKind.INSERT: self._insert,
            QueryKind.SELECT_ONE: self._select_one,
            QueryKind.SELECT_ALL: self._select_all,
            QueryKind.UPDATE: self._update,
            QueryKind.DELETE: self._delete,
        }

    @property
    def normalizer(self) -> ResultNormalizer:
        return self._normalizer

    async def execute(
        self, template: QueryTemplate, context: RequestContext
    ) -> ResponseEnvelope:
        """
        Bind the request's parameters and run *template*.

        Raises:
            PayloadError: If the path parameter or ``data`` is unusable;
                the database is not touched.
            DatabaseError: If the driver reports a failure.
        """
        key: Any = template.coerce_key(context.params) if template.requires_key else None
        values: Optional[Dict[str, Any]] = (
            template.bind_values(context.data) if template.requires_payload else None
        )
        handler: _Handler = self._handlers[template.kind]

        try:
            async with self._engine.begin() as conn:
                envelope: ResponseEnvelope = await handler(conn, template, key, values)
        except SQLAlchemyError as exc:
            logger.error(
                "%s on '%s' failed: %s",
                template.kind.value,
                template.table,
                exc,
            )
            raise DatabaseError.from_driver(
                exc, f"{template.kind.value} on '{template.table}'"
            ) from exc

        logger.debug(
            "%s on '%s' → %s row(s).",
            template.kind.value,
            template.table,
            "no" if envelope.rows is None else len(envelope.rows),
        )
        return envelope

    # -- Handlers -------------------------------------------------------------

    async def _select_all(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any, values: Any
    ) -> ResponseEnvelope:
        result = await conn.execute(template.select_all())
        return ResponseEnvelope(rows=self._normalizer.rows(result))

    async def _select_one(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any, values: Any
    ) -> ResponseEnvelope:
        return ResponseEnvelope(rows=await self._normalizer.fetch_one(conn, template, key))

    async def _insert(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any, values: Any
    ) -> ResponseEnvelope:
        return ResponseEnvelope(rows=await self._normalizer.insert(conn, template, values))

    async def _update(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any, values: Any
    ) -> ResponseEnvelope:
        return ResponseEnvelope(
            rows=await self._normalizer.update(conn, template, key, values)
        )

    async def _delete(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any, values: Any
    ) -> ResponseEnvelope:
        await conn.execute(template.delete(key))
        return ResponseEnvelope.empty()

    def __repr__(self) -> str:
        return f"<ExecutionEngine {self._engine.url!r} {self._normalizer!r}>"


__all__: List[str] = ["ExecutionEngine"]
