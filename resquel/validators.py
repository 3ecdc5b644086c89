# File: resquel/validators.py
"""
Resquel - Configuration Validators
==================================
A **pure-function validation pipeline** over the Pydantic models in
``resquel.models``.

Pydantic handles per-field structure (method names, hook callables, URL
syntax). This module adds the semantic checks that decide whether a route
list can be compiled at all: endpoint shape per method, SQL identifiers,
duplicate routes and driver compatibility.

Usage by downstream modules:
    from resquel.validators import validate_full
    result = validate_full(config)
    if result.has_errors:
        raise ConfigurationError.from_result(result)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from sqlalchemy.exc import ArgumentError

from resquel.models import DatabaseConfig, HttpMethod, ResquelConfig, RouteSpec
from resquel.utils import is_identifier, path_parameters

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the pipeline."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def format_report(self) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            lines.append(f"  {item.level.upper():<7s} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"           {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Methods that address one row and therefore need an identifying placeholder.
_KEYED_METHODS: FrozenSet[str] = frozenset({HttpMethod.PUT.value, HttpMethod.DELETE.value})

# Common SQL reserved words. Identifiers are always quoted by the query
# builder, so hitting one of these is only worth a warning.
_SQL_RESERVED_WORDS: FrozenSet[str] = frozenset(
    {
        "select", "insert", "update", "delete", "drop", "create", "alter",
        "table", "column", "index", "from", "where", "join", "order",
        "group", "user", "key", "values", "default", "check", "primary",
        "references", "constraint", "limit", "offset", "union", "all",
    }
)


def _route_ctx(index: int, route: RouteSpec) -> Dict[str, Any]:
    return {"route": index, "method": route.method, "endpoint": route.endpoint}


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_endpoints(config: ResquelConfig) -> ValidationResult:
    """
    Validate every endpoint pattern against its method:

    - must start with ``/``
    - at most one placeholder
    - PUT / DELETE require a placeholder
    - POST with a placeholder is accepted, the placeholder is ignored
    """
    result: ValidationResult = ValidationResult()

    for index, route in enumerate(config.routes):
        ctx: Dict[str, Any] = _route_ctx(index, route)

        if not route.path.startswith("/"):
            result.add_error(
                "ENDPOINT_NOT_ABSOLUTE",
                f"Endpoint '{route.endpoint}' must start with '/'.",
                ctx,
            )

        params: Tuple[str, ...] = path_parameters(route.endpoint)
        if len(params) > 1:
            result.add_error(
                "TOO_MANY_PATH_PARAMETERS",
                f"Endpoint '{route.endpoint}' declares {len(params)} path "
                f"parameters {list(params)}; at most one identifier is supported.",
                ctx,
            )

        if route.method in _KEYED_METHODS and not params:
            result.add_error(
                "MISSING_PATH_PARAMETER",
                f"{route.method} route '{route.endpoint}' on table "
                f"'{route.table}' has no path parameter identifying the row.",
                ctx,
            )

        if route.method == HttpMethod.POST.value and params:
            result.add_warning(
                "POST_PATH_PARAMETER_IGNORED",
                f"POST route '{route.endpoint}' declares path parameter "
                f"'{params[0]}' which is not used by INSERT.",
                ctx,
            )

    return result


def validate_identifiers(config: ResquelConfig) -> ValidationResult:
    """Table, schema, key and column names must be plain SQL identifiers."""
    result: ValidationResult = ValidationResult()

    for index, route in enumerate(config.routes):
        ctx: Dict[str, Any] = _route_ctx(index, route)

        names: List[Tuple[str, str]] = [("table", route.table), ("key", route.key)]
        if route.schema_name is not None:
            names.append(("schema", route.schema_name))
        names.extend(("column", col) for col in route.columns or ())

        for kind, name in names:
            if not is_identifier(name):
                result.add_error(
                    f"INVALID_{kind.upper()}_NAME",
                    f"{kind.capitalize()} name '{name}' is not a valid identifier.",
                    ctx,
                )
            elif name.lower() in _SQL_RESERVED_WORDS:
                result.add_warning(
                    f"{kind.upper()}_NAME_SQL_RESERVED",
                    f"{kind.capitalize()} name '{name}' is a SQL reserved word; "
                    f"it will be quoted.",
                    ctx,
                )

        if route.columns is not None:
            seen: Set[str] = set()
            for col in route.columns:
                if col in seen:
                    result.add_error(
                        "DUPLICATE_COLUMN_NAME",
                        f"Column '{col}' is listed twice for route '{route.endpoint}'.",
                        ctx,
                    )
                seen.add(col)
            if not route.columns and route.method in ("POST", "PUT"):
                result.add_warning(
                    "NO_WRITABLE_COLUMNS",
                    f"{route.method} route '{route.endpoint}' allows no columns; "
                    f"every non-empty payload will be rejected.",
                    ctx,
                )

    return result


def validate_duplicate_routes(config: ResquelConfig) -> ValidationResult:
    """Two routes with the same method and path shape would shadow each other."""
    result: ValidationResult = ValidationResult()
    seen: Dict[Tuple[str, str], int] = {}

    for index, route in enumerate(config.routes):
        # ``/a/{id}`` and ``/a/{key}`` match the same requests.
        shape: str = route.path
        for param in path_parameters(route.endpoint):
            shape = shape.replace("{" + param + "}", "{}")
        signature: Tuple[str, str] = (HttpMethod(route.method).value, shape)

        if signature in seen:
            result.add_error(
                "DUPLICATE_ROUTE",
                f"Route {route.method} '{route.endpoint}' duplicates route "
                f"#{seen[signature]}.",
                _route_ctx(index, route),
            )
        else:
            seen[signature] = index

    return result


def validate_database(db: DatabaseConfig) -> ValidationResult:
    """The URL must name a known dialect served by an asyncio driver."""
    result: ValidationResult = ValidationResult()
    ctx: Dict[str, Any] = {"dialect": db.dialect_name}

    try:
        dialect_cls: Any = db.sqlalchemy_url.get_dialect()
    except ArgumentError as exc:
        result.add_error(
            "UNKNOWN_DIALECT",
            f"Database URL names an unknown dialect/driver: {exc}",
            ctx,
        )
        return result

    if not getattr(dialect_cls, "is_async", False):
        result.add_error(
            "ASYNC_DRIVER_REQUIRED",
            f"Driver '{dialect_cls.driver}' for '{db.dialect_name}' is not an "
            f"asyncio driver; use e.g. 'sqlite+aiosqlite' or 'postgresql+asyncpg'.",
            ctx,
        )

    return result


# ---------------------------------------------------------------------------
# Composite validation orchestrator
# ---------------------------------------------------------------------------


def validate_routes(config: ResquelConfig) -> ValidationResult:
    """Run all route-level validators and merge their results."""
    result: ValidationResult = ValidationResult()

    validators: List[Callable[[ResquelConfig], ValidationResult]] = [
        validate_endpoints,
        validate_identifiers,
        validate_duplicate_routes,
    ]

    for validator_fn in validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(config))

    return result


def validate_full(config: ResquelConfig) -> ValidationResult:
    """
    **Master validation entry point.**

    Called by ``Resquel.init()`` and the CLI's ``--validate-only`` mode
    before anything is compiled.
    """
    logger.info(
        "Starting validation: %d routes, dialect=%s",
        len(config.routes),
        config.db.dialect_name,
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_routes(config))
    result.merge(validate_database(config.db))

    if result.has_errors:
        logger.error("Validation FAILED. %s", result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_endpoints",
    "validate_identifiers",
    "validate_duplicate_routes",
    "validate_database",
    "validate_routes",
    "validate_full",
]
