# File: resquel/core.py
"""
Resquel - Facade
================

The object applications interact with::

    resquel = Resquel(config)
    router = await resquel.init()
    app.include_router(router, prefix="/api")

``init()`` runs the whole pipeline once:

    1. Validate the configuration (validators.py); any error is fatal.
    2. Compile every route into a ``CompiledRoute`` (compiler.py).
    3. Create the async engine, or adopt the one passed in.
    4. Optionally verify connectivity.
    5. Pick the response normalizer for the backend (normalizers.py).
    6. Build the ``APIRouter`` (router.py).

The router is only exposed once every step has succeeded. A ``Resquel``
owns its configuration, compiled routes and engine; several instances can
live side by side in one process.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, List, Mapping, Optional, Tuple, Union

import sqlalchemy as sa
from fastapi import APIRouter, FastAPI
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from resquel.compiler import CompiledRoute, compile_routes
from resquel.engine import ExecutionEngine
from resquel.errors import ConfigurationError
from resquel.loader import read_config
from resquel.models import ResquelConfig
from resquel.normalizers import ResultNormalizer, select_normalizer
from resquel.router import build_router
from resquel.utils import Timer
from resquel.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.core")


class Resquel:
    """
    Compiles a route configuration into a mountable ``APIRouter``.

    Args:
        config: A ``ResquelConfig`` or a raw mapping with ``db`` and ``routes``.
        engine: An existing ``AsyncEngine`` to use instead of creating one
            from ``config.db``. An injected engine is not disposed by
            ``close()``.
    """

    def __init__(
        self,
        config: Union[ResquelConfig, Mapping[str, Any]],
        *,
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        if not isinstance(config, ResquelConfig):
            config = ResquelConfig.model_validate(config)
        self._config: ResquelConfig = config
        self._engine: Optional[AsyncEngine] = engine
        self._owns_engine: bool = engine is None
        self._routes: Tuple[CompiledRoute, ...] = ()
        self._router: Optional[APIRouter] = None
        self._executor: Optional[ExecutionEngine] = None
        self._init_started: bool = False

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        *,
        database_url: Optional[str] = None,
        engine: Optional[AsyncEngine] = None,
    ) -> "Resquel":
        """Build an instance from a JSON / YAML configuration file."""
        return cls(read_config(Path(path), database_url=database_url), engine=engine)

    # -----------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------

    @property
    def config(self) -> ResquelConfig:
        return self._config

    @property
    def routes(self) -> Tuple[CompiledRoute, ...]:
        return self._routes

    @property
    def router(self) -> APIRouter:
        if self._router is None:
            raise RuntimeError("Resquel.router is only available after a successful init().")
        return self._router

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Resquel.engine is only available after init().")
        return self._engine

    @property
    def normalizer(self) -> ResultNormalizer:
        if self._executor is None:
            raise RuntimeError("Resquel.normalizer is only available after init().")
        return self._executor.normalizer

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    async def init(self) -> APIRouter:
        """
        Validate, compile and connect; return the router.

        Raises:
            ConfigurationError: If the configuration is invalid. No router
                is built.
            RuntimeError: If ``init()`` was already called on this instance.
            sqlalchemy.exc.SQLAlchemyError: If the connectivity check fails.
        """
        if self._init_started:
            raise RuntimeError(
                "Resquel.init() may only be called once; create a new instance to recompile."
            )
        self._init_started = True

        with Timer("validate") as t_validate:
            result: ValidationResult = validate_full(self._config)
        for warning in result.warnings:
            logger.warning("%s", warning)
        if result.has_errors:
            raise ConfigurationError.from_result(result)

        with Timer("compile") as t_compile:
            routes: Tuple[CompiledRoute, ...] = compile_routes(self._config.routes)

        engine: AsyncEngine = self._engine or self._create_engine()
        with Timer("connect") as t_connect:
            if self._config.db.connect_on_init:
                await self._verify_connection(engine)

        executor: ExecutionEngine = ExecutionEngine(engine, select_normalizer(self._config.db))
        router: APIRouter = build_router(routes, executor)

        self._engine = engine
        self._routes = routes
        self._executor = executor
        self._router = router

        logger.info(
            "Resquel initialised: %d route(s), %r "
            "(validate %.3fs, compile %.3fs, connect %.3fs).",
            len(routes),
            executor.normalizer,
            t_validate.elapsed,
            t_compile.elapsed,
            t_connect.elapsed,
        )
        return router

    async def close(self) -> None:
        """Dispose the engine's pool if this instance created the engine."""
        if self._engine is not None and self._owns_engine:
            await self._engine.dispose()
            logger.debug("Engine disposed.")

    async def __aenter__(self) -> "Resquel":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _create_engine(self) -> AsyncEngine:
        db = self._config.db
        engine: AsyncEngine = create_async_engine(
            db.sqlalchemy_url,
            echo=db.echo,
            pool_pre_ping=db.pool_pre_ping,
            connect_args=dict(db.connect_args),
        )
        self._owns_engine = True
        logger.debug("Created async engine for %r.", db.sqlalchemy_url)
        return engine

    async def _verify_connection(self, engine: AsyncEngine) -> None:
        try:
            async with engine.connect() as conn:
                await conn.scalar(sa.select(sa.literal(1)))
        except SQLAlchemyError:
            logger.error("Cannot connect to %r.", engine.url)
            if self._owns_engine:
                await engine.dispose()
            raise

    def __repr__(self) -> str:
        state: str = "ready" if self._router is not None else "not initialised"
        return f"<Resquel {len(self._config.routes)} routes, {state}>"


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(resquel: Resquel, *, prefix: str = "", **fastapi_kwargs: Any) -> FastAPI:
    """
    Wrap a ``Resquel`` in a FastAPI application.

    The lifespan runs ``init()``, mounts the router under *prefix* and
    closes the engine on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.include_router(await resquel.init(), prefix=prefix)
        try:
            yield
        finally:
            await resquel.close()

    fastapi_kwargs.setdefault("title", "Resquel API")
    return FastAPI(lifespan=lifespan, **fastapi_kwargs)


__all__: List[str] = ["Resquel", "create_app"]
