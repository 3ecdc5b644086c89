# File: resquel/normalizers.py
"""
Resquel - Response Normalizers
==============================
Drivers disagree on what an INSERT or UPDATE gives back: some return the
row (``RETURNING``), some only a generated id or an affected-row count.
A ``ResultNormalizer`` hides that difference so every backend yields the
same ``rows`` for the same route.

Two families:

``ReturningNormalizer``
    PostgreSQL and SQLite (3.35+). INSERT / UPDATE carry ``RETURNING *``.
``RefetchNormalizer``
    MySQL, MariaDB, SQL Server, Oracle and anything else. The row is read
    back by key inside the same transaction.

The family is picked from ``DatabaseConfig.result_strategy``; ``auto``
chooses by dialect name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Type

import sqlalchemy as sa
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncConnection

from resquel.compiler import QueryTemplate
from resquel.errors import DatabaseError
from resquel.models import DatabaseConfig, ResultStrategy

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.normalizers")

Row = Dict[str, Any]

_RETURNING_DIALECTS: FrozenSet[str] = frozenset({"postgresql", "sqlite"})


class ResultNormalizer:
    """Base interface: turn driver results into lists of plain dict rows."""

    name: str = "base"

    @staticmethod
    def rows(result: Result) -> List[Row]:
        return [dict(row._mapping) for row in result]

    async def fetch_one(
        self, conn: AsyncConnection, template: QueryTemplate, key: Any
    ) -> List[Row]:
        result: Result = await conn.execute(template.select_one(key))
        return self.rows(result)[:1]

    async def insert(
        self, conn: AsyncConnection, template: QueryTemplate, values: Mapping[str, Any]
    ) -> List[Row]:
        raise NotImplementedError

    async def update(
        self,
        conn: AsyncConnection,
        template: QueryTemplate,
        key: Any,
        values: Mapping[str, Any],
    ) -> List[Row]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class ReturningNormalizer(ResultNormalizer):
    """Rows come straight back from ``INSERT/UPDATE … RETURNING *``."""

    name = "returning"

    async def insert(
        self, conn: AsyncConnection, template: QueryTemplate, values: Mapping[str, Any]
    ) -> List[Row]:
        stmt: sa.Insert = template.insert(values).returning(sa.literal_column("*"))
        return self.rows(await conn.execute(stmt))

    async def update(
        self,
        conn: AsyncConnection,
        template: QueryTemplate,
        key: Any,
        values: Mapping[str, Any],
    ) -> List[Row]:
        stmt: sa.Update = template.update(key, values).returning(sa.literal_column("*"))
        return self.rows(await conn.execute(stmt))[:1]


class RefetchNormalizer(ResultNormalizer):
    """Execute the write, then read the row back by its key."""

    name = "refetch"

    async def insert(
        self, conn: AsyncConnection, template: QueryTemplate, values: Mapping[str, Any]
    ) -> List[Row]:
        stmt: sa.Insert = template.insert(values)

        if values.get(template.key) is not None:
            await conn.execute(stmt)
            new_key: Any = values[template.key]
        elif conn.dialect.insert_returning:
            # SQL Server renders this as OUTPUT inserted.<key>.
            result: Result = await conn.execute(stmt.returning(stmt.table.c[template.key]))
            new_key = result.scalar_one()
        else:
            # Drivers report 0 when the table has no auto-increment column.
            new_key = (await conn.execute(stmt)).lastrowid or None

        if new_key is None:
            raise self._lost_row(template, "no generated key reported")
        rows: List[Row] = await self.fetch_one(conn, template, new_key)
        if not rows:
            raise self._lost_row(template, f"no row found for key {new_key!r}")
        return rows

    async def update(
        self,
        conn: AsyncConnection,
        template: QueryTemplate,
        key: Any,
        values: Mapping[str, Any],
    ) -> List[Row]:
        result: Result = await conn.execute(template.update(key, values))
        if result.rowcount == 0:
            return []
        # The update may have changed the key itself.
        return await self.fetch_one(conn, template, values.get(template.key, key))

    @staticmethod
    def _lost_row(template: QueryTemplate, reason: str) -> DatabaseError:
        # Raised inside the transaction, so the INSERT is rolled back.
        logger.error("insert on '%s' cannot be read back: %s.", template.table, reason)
        return DatabaseError(f"insert on '{template.table}' failed: {reason}")


_NORMALIZERS: Dict[ResultStrategy, Type[ResultNormalizer]] = {
    ResultStrategy.RETURNING: ReturningNormalizer,
    ResultStrategy.REFETCH: RefetchNormalizer,
}


def select_normalizer(db: DatabaseConfig) -> ResultNormalizer:
    """Pick the normalizer family for a database configuration."""
    strategy: ResultStrategy = ResultStrategy(db.result_strategy)
    if strategy is ResultStrategy.AUTO:
        strategy = (
            ResultStrategy.RETURNING
            if db.dialect_name in _RETURNING_DIALECTS
            else ResultStrategy.REFETCH
        )
    normalizer: ResultNormalizer = _NORMALIZERS[strategy]()
    logger.debug("Using %r for dialect '%s'.", normalizer, db.dialect_name)
    return normalizer


__all__: List[str] = [
    "ResultNormalizer",
    "ReturningNormalizer",
    "RefetchNormalizer",
    "select_normalizer",
]
