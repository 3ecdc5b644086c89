# File: resquel/__init__.py
"""
Resquel - REST Routes Compiled from Declarative Config
======================================================

Turns a list of ``{method, endpoint, table, before, after}`` routes into a
FastAPI ``APIRouter``. Each route runs one parameterized SQL operation on
one table and answers with a uniform ``{"rows": [...]}`` envelope (``{}``
for DELETE), wrapped in optional before / after hooks.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌────────────────┐
    │  CLI / App   │────▶│    Resquel     │────▶│  APIRouter     │
    │   (cli.py)   │     │   (core.py)    │     │  (router.py)   │
    └──────────────┘     └───────┬───────┘     └───────┬────────┘
                                 │                     │ per request
                    ┌────────────┼────────────┐        ▼
                    ▼            ▼            ▼    ┌──────────┐    ┌───────────┐
             ┌──────────┐ ┌───────────┐ ┌────────┐ │HookChain │───▶│ Execution │
             │validators│ │ compiler  │ │ models │ │(hooks.py)│    │  Engine   │
             └──────────┘ └───────────┘ └────────┘ └──────────┘    └─────┬─────┘
                                                                         ▼
                                                                  normalizers.py

Usage::

    from contextlib import asynccontextmanager

    from fastapi import FastAPI
    from resquel import Resquel

    resquel = Resquel({
        "db": "sqlite+aiosqlite:///./app.db",
        "routes": [
            {"method": "GET", "endpoint": "/customer", "table": "customers"},
            {"method": "GET", "endpoint": "/customer/:id", "table": "customers"},
        ],
    })

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.include_router(await resquel.init(), prefix="/api")
        yield
        await resquel.close()

    app = FastAPI(lifespan=lifespan)

    # Or let resquel build the same app:
    from resquel import create_app
    app = create_app(resquel, prefix="/api")

Public API:
    - Resquel            - Facade: validate, compile, connect, build router
    - create_app         - FastAPI application with a managed lifespan
    - ResquelConfig      - Root configuration model
    - RouteSpec          - One configured route
    - RequestContext     - Per-request state handed to hooks
    - validate_full      - Configuration validation entry point
"""

from __future__ import annotations

__version__: str = "1.0.0"

from resquel.compiler import CompiledRoute, QueryKind, QueryTemplate, compile_routes
from resquel.context import RequestContext, ResponseEnvelope
from resquel.core import Resquel, create_app
from resquel.errors import (
    ConfigurationError,
    DatabaseError,
    PayloadError,
    RequestError,
    ResquelError,
)
from resquel.hooks import HookChain, Proceed, log_request
from resquel.loader import load_config_file, parse_raw_config, read_config
from resquel.models import (
    DatabaseConfig,
    HttpMethod,
    KeyType,
    ResquelConfig,
    ResultStrategy,
    RouteSpec,
)
from resquel.normalizers import (
    RefetchNormalizer,
    ResultNormalizer,
    ReturningNormalizer,
    select_normalizer,
)
from resquel.validators import ValidationResult, validate_full

__all__ = [
    "__version__",
    # Facade
    "Resquel",
    "create_app",
    # Models
    "DatabaseConfig",
    "HttpMethod",
    "KeyType",
    "ResquelConfig",
    "ResultStrategy",
    "RouteSpec",
    # Compilation
    "CompiledRoute",
    "QueryKind",
    "QueryTemplate",
    "compile_routes",
    # Request pipeline
    "HookChain",
    "Proceed",
    "RequestContext",
    "ResponseEnvelope",
    "log_request",
    # Normalizers
    "ResultNormalizer",
    "ReturningNormalizer",
    "RefetchNormalizer",
    "select_normalizer",
    # Config files & validation
    "load_config_file",
    "parse_raw_config",
    "read_config",
    "ValidationResult",
    "validate_full",
    # Errors
    "ResquelError",
    "ConfigurationError",
    "RequestError",
    "PayloadError",
    "DatabaseError",
]
