# File: resquel/compiler.py
"""
Resquel - Query Compiler
========================
Turns each ``RouteSpec`` into a ``CompiledRoute``: the route plus one
``QueryTemplate`` bound to a table and to its parameter sources.

Decision rule::

    POST                       → INSERT      (values from body ``data``)
    GET    with placeholder    → SELECT-one  (filtered by the key)
    GET    without placeholder → SELECT-all
    PUT    with placeholder    → UPDATE      (filtered by the key, values from ``data``)
    DELETE with placeholder    → DELETE      (filtered by the key)

PUT or DELETE without a placeholder raises ``ConfigurationError`` here, at
compile time. Compilation is pure; templates build SQLAlchemy Core
statements on demand, and every user-supplied value ends up in a bound
parameter.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy import Delete, Insert, Select, Update

from resquel.errors import ConfigurationError, PayloadError
from resquel.models import HttpMethod, KeyType, RouteSpec
from resquel.utils import is_identifier, path_parameters

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.compiler")


class QueryKind(str, Enum):
    """The canonical operations a route can be bound to."""

    INSERT = "insert"
    SELECT_ONE = "select_one"
    SELECT_ALL = "select_all"
    UPDATE = "update"
    DELETE = "delete"


_KEYED_KINDS: FrozenSet[QueryKind] = frozenset(
    {QueryKind.SELECT_ONE, QueryKind.UPDATE, QueryKind.DELETE}
)
_PAYLOAD_KINDS: FrozenSet[QueryKind] = frozenset({QueryKind.INSERT, QueryKind.UPDATE})


# ---------------------------------------------------------------------------
# Query template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryTemplate:
    """
    A parameterized SQL operation bound to one table.

    Statements are built from lightweight ``sa.table()`` / ``sa.column()``
    constructs, so no schema reflection is needed and identifiers are
    quoted by the dialect.
    """

    kind: QueryKind
    table: str
    key: str = "id"
    key_type: KeyType = KeyType.INTEGER
    path_param: Optional[str] = None
    schema_name: Optional[str] = None
    columns: Optional[FrozenSet[str]] = None

    @property
    def requires_key(self) -> bool:
        return self.kind in _KEYED_KINDS

    @property
    def requires_payload(self) -> bool:
        return self.kind in _PAYLOAD_KINDS

    # -- Parameter binding --------------------------------------------------

    def coerce_key(self, params: Mapping[str, Any]) -> Any:
        """Read the identifying path parameter and coerce it to ``key_type``."""
        raw: Any = params.get(self.path_param) if self.path_param else None
        if raw is None:
            raise PayloadError(f"Missing path parameter '{self.path_param}'.")

        try:
            if self.key_type == KeyType.INTEGER:
                return int(raw)
            if self.key_type == KeyType.UUID:
                # Bound as text; drivers without a native UUID type accept it too.
                return str(uuid.UUID(str(raw)))
        except ValueError as exc:
            raise PayloadError(
                f"Path parameter '{self.path_param}' must be a valid "
                f"{KeyType(self.key_type).value}, got '{raw}'."
            ) from exc
        return str(raw)

    def bind_values(self, data: Any) -> Dict[str, Any]:
        """Check a body ``data`` object against the column rules."""
        if not isinstance(data, Mapping):
            raise PayloadError("Request body must contain a 'data' object.")

        invalid: List[str] = [
            str(k) for k in data if not isinstance(k, str) or not is_identifier(k)
        ]
        if invalid:
            raise PayloadError(f"Invalid column name(s) in 'data': {sorted(invalid)}.")

        if self.columns is not None:
            unknown: List[str] = sorted(set(data) - self.columns)
            if unknown:
                raise PayloadError(
                    f"Unknown column(s) for table '{self.table}': {unknown}."
                )

        nested: List[str] = sorted(
            k for k, v in data.items() if isinstance(v, (Mapping, list))
        )
        if nested:
            raise PayloadError(f"Column values must be scalars; not for {nested}.")

        if self.kind is QueryKind.UPDATE and not data:
            raise PayloadError("'data' must contain at least one column to update.")

        return dict(data)

    # -- Statements ---------------------------------------------------------

    def table_clause(self, names: Iterable[str] = ()) -> sa.TableClause:
        ordered: Dict[str, None] = dict.fromkeys([self.key, *names])
        return sa.table(
            self.table,
            *(sa.column(name) for name in ordered),
            schema=self.schema_name,
        )

    def select_all(self) -> Select:
        tbl: sa.TableClause = self.table_clause()
        return (
            sa.select(sa.literal_column("*"))
            .select_from(tbl)
            .order_by(tbl.c[self.key])
        )

    def select_one(self, key: Any) -> Select:
        tbl: sa.TableClause = self.table_clause()
        return (
            sa.select(sa.literal_column("*"))
            .select_from(tbl)
            .where(tbl.c[self.key] == key)
        )

    def insert(self, values: Mapping[str, Any]) -> Insert:
        tbl: sa.TableClause = self.table_clause(values)
        return sa.insert(tbl).values(dict(values))

    def update(self, key: Any, values: Mapping[str, Any]) -> Update:
        tbl: sa.TableClause = self.table_clause(values)
        return sa.update(tbl).where(tbl.c[self.key] == key).values(dict(values))

    def delete(self, key: Any) -> Delete:
        tbl: sa.TableClause = self.table_clause()
        return sa.delete(tbl).where(tbl.c[self.key] == key)

    def __repr__(self) -> str:
        target: str = f"{self.schema_name}.{self.table}" if self.schema_name else self.table
        return f"<QueryTemplate {self.kind.value} {target} key={self.key}>"


# ---------------------------------------------------------------------------
# Compiled route
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledRoute:
    """A route and its query template, immutable once built."""

    spec: RouteSpec
    template: QueryTemplate

    @property
    def method(self) -> str:
        return HttpMethod(self.spec.method).value

    @property
    def path(self) -> str:
        return self.spec.path

    @property
    def name(self) -> str:
        return self.spec.route_name

    def __repr__(self) -> str:
        return f"<CompiledRoute {self.method} {self.path} → {self.template!r}>"


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def select_query_kind(route: RouteSpec) -> QueryKind:
    """Apply the method + endpoint decision rule to one route."""
    method: HttpMethod = HttpMethod(route.method)
    params: Tuple[str, ...] = path_parameters(route.endpoint)

    if len(params) > 1:
        raise ConfigurationError(
            f"{method.value} {route.endpoint}: only one path parameter is supported, "
            f"found {list(params)}."
        )

    if method is HttpMethod.POST:
        return QueryKind.INSERT
    if method is HttpMethod.GET:
        return QueryKind.SELECT_ONE if params else QueryKind.SELECT_ALL

    if not params:
        raise ConfigurationError(
            f"{method.value} {route.endpoint}: a path parameter identifying the "
            f"row is required."
        )
    return QueryKind.UPDATE if method is HttpMethod.PUT else QueryKind.DELETE


def compile_route(route: RouteSpec) -> CompiledRoute:
    """Bind one route to its query template."""
    kind: QueryKind = select_query_kind(route)
    template: QueryTemplate = QueryTemplate(
        kind=kind,
        table=route.table,
        key=route.key,
        key_type=KeyType(route.key_type),
        path_param=route.path_param if kind in _KEYED_KINDS else None,
        schema_name=route.schema_name,
        columns=frozenset(route.columns) if route.columns is not None else None,
    )
    compiled: CompiledRoute = CompiledRoute(spec=route, template=template)
    logger.debug("Compiled %r", compiled)
    return compiled


def compile_routes(routes: Iterable[RouteSpec]) -> Tuple[CompiledRoute, ...]:
    """Compile every route, in order; the first bad route aborts the batch."""
    return tuple(compile_route(route) for route in routes)


__all__: List[str] = [
    "QueryKind",
    "QueryTemplate",
    "CompiledRoute",
    "select_query_kind",
    "compile_route",
    "compile_routes",
]
