# File: resquel/utils.py
"""
Resquel - Utility Functions & Helpers
=====================================
Endpoint pattern parsing, identifier checks, import-string resolution and
a small profiling timer used by the compile pipeline.

Endpoint patterns are parsed once per route at compile time, so the
helpers here are cached with ``functools.lru_cache``.
"""

from __future__ import annotations

import functools
import importlib
import logging
import re
import time
from typing import Any, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

# Express style ``/customer/:id`` segments.
_EXPRESS_PARAM_RE: re.Pattern[str] = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")
# FastAPI / Starlette style ``/customer/{id}`` segments (optional converter).
_BRACE_PARAM_RE: re.Pattern[str] = re.compile(
    r"\{([A-Za-z_][A-Za-z0-9_]*)(?::[A-Za-z_]+)?\}"
)
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NON_WORD_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]+")


# ---------------------------------------------------------------------------
# Endpoint helpers
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def normalize_endpoint(endpoint: str) -> str:
    """
    Rewrite Express-style placeholders into the FastAPI form.

    Examples:
        >>> normalize_endpoint("/customer/:id")
        '/customer/{id}'
        >>> normalize_endpoint("/customer/{id}")
        '/customer/{id}'
    """
    path: str = _EXPRESS_PARAM_RE.sub(r"{\1}", endpoint.strip())
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


@functools.lru_cache(maxsize=None)
def path_parameters(endpoint: str) -> Tuple[str, ...]:
    """Return placeholder names of an endpoint pattern, in order."""
    return tuple(_BRACE_PARAM_RE.findall(normalize_endpoint(endpoint)))


@functools.lru_cache(maxsize=None)
def endpoint_slug(endpoint: str) -> str:
    """
    Collapse an endpoint pattern into an identifier fragment.

    Examples:
        >>> endpoint_slug("/customer/:id")
        'customer_id'
        >>> endpoint_slug("/")
        'root'
    """
    return _NON_WORD_RE.sub("_", normalize_endpoint(endpoint)).strip("_") or "root"


def is_identifier(name: str) -> bool:
    """True when *name* is usable as an unquoted SQL identifier."""
    return bool(_IDENTIFIER_RE.match(name))


# ---------------------------------------------------------------------------
# Import strings
# ---------------------------------------------------------------------------


def import_string(path: str) -> Any:
    """
    Resolve ``"package.module:attribute"`` to the named object.

    A dotted path without a colon is split on its last dot, so
    ``"resquel.hooks.log_request"`` works as well.

    Raises:
        ImportError: If the module or attribute cannot be found.
    """
    module_path, sep, attr_path = path.partition(":")
    if not sep:
        module_path, _, attr_path = path.rpartition(".")
    if not module_path or not attr_path:
        raise ImportError(f"'{path}' is not a 'module:attribute' import string.")

    module: Any = importlib.import_module(module_path)
    obj: Any = module
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ImportError(
                f"Module '{module_path}' has no attribute '{attr_path}'."
            ) from exc
    return obj


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("compile routes") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "normalize_endpoint",
    "path_parameters",
    "endpoint_slug",
    "is_identifier",
    "import_string",
    "Timer",
]
