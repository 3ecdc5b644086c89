# File: resquel/models.py
"""
Resquel - Configuration Models
==============================
Pydantic V2 models representing the declarative route list and the database
connection settings. These models form the single source of truth for the
entire pipeline: Config Loading → Validation → Route Compilation → Serving.

All models are frozen. Hook lists are converted to tuples when a route is
built, so a caller mutating the list it passed in afterwards cannot change
what a compiled route runs.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from resquel.utils import (
    endpoint_slug,
    import_string,
    normalize_endpoint,
    path_parameters,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.models")

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

#: ``hook(context, proceed)``; may be a plain function or a coroutine function.
Hook = Callable[..., Any]

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HttpMethod(str, Enum):
    """HTTP methods a route may be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class KeyType(str, Enum):
    """Type the identifying path parameter is coerced to before binding."""

    INTEGER = "integer"
    STRING = "string"
    UUID = "uuid"


class ResultStrategy(str, Enum):
    """How created / updated rows are materialised for the response."""

    AUTO = "auto"
    RETURNING = "returning"
    REFETCH = "refetch"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)


def _resolve_hooks(value: Any) -> Tuple[Hook, ...]:
    """Accept ``None``, one hook, or a sequence; resolve import strings."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        value = [value]
    hooks: List[Hook] = []
    for item in value:
        if isinstance(item, str):
            try:
                item = import_string(item)
            except ImportError as exc:
                raise ValueError(f"Cannot import hook '{item}': {exc}") from exc
        if not callable(item):
            raise ValueError(f"Hook {item!r} is not callable.")
        hooks.append(item)
    return tuple(hooks)


# ---------------------------------------------------------------------------
# Route specification
# ---------------------------------------------------------------------------


class RouteSpec(BaseModel):
    """
    One configured endpoint and its SQL binding.

    The endpoint pattern decides the route's shape: a placeholder
    (``/customer/:id`` or ``/customer/{id}``) makes it a single-resource
    route filtered on ``key``, no placeholder makes it a collection route.
    """

    model_config = _SHARED_CONFIG

    method: HttpMethod = Field(..., description="HTTP method (case-insensitive).")
    endpoint: str = Field(..., min_length=1, description="Path pattern.")
    table: str = Field(..., min_length=1, description="Target table name.")
    schema_name: Optional[str] = Field(
        default=None, description="Database schema of the table."
    )
    key: str = Field(
        default="id", min_length=1, description="Identifier column matched by the path parameter."
    )
    key_type: KeyType = Field(
        default=KeyType.INTEGER, description="Type the path parameter is coerced to."
    )
    columns: Optional[Tuple[str, ...]] = Field(
        default=None,
        description="Writable columns; any identifier is accepted when omitted.",
    )
    before: Tuple[Hook, ...] = Field(
        default=(), description="Hooks run before the query, in order."
    )
    after: Tuple[Hook, ...] = Field(
        default=(), description="Hooks run after the query, in order."
    )
    name: Optional[str] = Field(default=None, description="Route name.")

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("before", "after", mode="before")
    @classmethod
    def _coerce_hooks(cls, v: Any) -> Tuple[Hook, ...]:
        return _resolve_hooks(v)

    @field_validator("columns", mode="before")
    @classmethod
    def _coerce_columns(cls, v: Any) -> Any:
        if isinstance(v, str):
            return (v,)
        return v

    # -- Derived helpers ----------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def path(self) -> str:
        """Endpoint in FastAPI form (``/customer/{id}``)."""
        return normalize_endpoint(self.endpoint)

    @computed_field  # type: ignore[misc]
    @property
    def path_param(self) -> Optional[str]:
        """Name of the identifying placeholder, ``None`` for collections."""
        params: Tuple[str, ...] = path_parameters(self.endpoint)
        return params[0] if params else None

    @property
    def is_collection(self) -> bool:
        return self.path_param is None

    @property
    def route_name(self) -> str:
        """``name``, else ``<method>_<table>_<endpoint slug>``."""
        if self.name:
            return self.name
        method: str = HttpMethod(self.method).value.lower()
        return f"{method}_{self.table}_{endpoint_slug(self.endpoint)}"

    def __repr__(self) -> str:
        return f"<Route {self.method} {self.path} → {self.table}>"


# ---------------------------------------------------------------------------
# Database settings
# ---------------------------------------------------------------------------


class DatabaseConfig(BaseModel):
    """Connection settings handed to ``create_async_engine``."""

    model_config = _SHARED_CONFIG

    url: str = Field(
        ...,
        min_length=1,
        description="SQLAlchemy URL with an async driver, e.g. 'sqlite+aiosqlite:///app.db'.",
    )
    echo: bool = Field(default=False, description="Log emitted SQL.")
    pool_pre_ping: bool = Field(
        default=True, description="Test pooled connections before use."
    )
    connect_args: Dict[str, Any] = Field(
        default_factory=dict, description="Extra DBAPI connect() arguments."
    )
    result_strategy: ResultStrategy = Field(
        default=ResultStrategy.AUTO,
        description="RETURNING or re-fetch for created / updated rows.",
    )
    connect_on_init: bool = Field(
        default=True, description="Verify connectivity during Resquel.init()."
    )

    @field_validator("url")
    @classmethod
    def _parsable_url(cls, v: str) -> str:
        try:
            make_url(v)
        except ArgumentError as exc:
            raise ValueError(f"Invalid database URL: {exc}") from exc
        return v

    @property
    def sqlalchemy_url(self) -> URL:
        return make_url(self.url)

    @computed_field  # type: ignore[misc]
    @property
    def dialect_name(self) -> str:
        """Backend name without driver, e.g. ``postgresql`` or ``sqlite``."""
        return self.sqlalchemy_url.get_backend_name()

    def __repr__(self) -> str:
        # Never show the password.
        return f"<DatabaseConfig {self.sqlalchemy_url!r}>"


# ---------------------------------------------------------------------------
# Root configuration
# ---------------------------------------------------------------------------


class ResquelConfig(BaseModel):
    """
    The root model: the database plus the ordered list of routes.

    Each ``Resquel`` instance owns one of these; nothing is shared
    between instances.
    """

    model_config = _SHARED_CONFIG

    db: DatabaseConfig = Field(..., description="Database connection settings.")
    routes: Tuple[RouteSpec, ...] = Field(
        ..., min_length=1, description="Routes, in mounting order."
    )

    @field_validator("db", mode="before")
    @classmethod
    def _url_shorthand(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"url": v}
        return v

    @model_validator(mode="after")
    def _log_summary(self) -> "ResquelConfig":
        logger.debug(
            "ResquelConfig built: %d route(s) over %d table(s).",
            len(self.routes),
            len(self.table_names),
        )
        return self

    @property
    def table_names(self) -> List[str]:
        seen: Dict[str, None] = {}
        for route in self.routes:
            seen.setdefault(route.table, None)
        return list(seen)

    def __repr__(self) -> str:
        return f"<ResquelConfig {len(self.routes)} routes, db={self.db.dialect_name}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Hook",
    "HttpMethod",
    "KeyType",
    "ResultStrategy",
    "RouteSpec",
    "DatabaseConfig",
    "ResquelConfig",
]

logger.debug("resquel.models loaded: %d public symbols.", len(__all__))
