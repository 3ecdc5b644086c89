"""
tests/conftest.py
Shared fixtures for the resquel test suite.

Database tests run against a real SQLite file inside pytest's tmp_path,
reached through the aiosqlite driver. The schema is created with a plain
synchronous engine before Resquel connects.
"""

from __future__ import annotations

import copy
import logging
import pathlib
from typing import Any, Callable, Dict, Iterator, List

import pytest
import sqlalchemy as sa
import yaml

from resquel.context import RequestContext


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
CONFIG_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "resquel_example.yaml"

CUSTOMERS_DDL: str = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    firstName TEXT,
    lastName TEXT,
    email TEXT UNIQUE
)
"""


# ---------------------------------------------------------------------------
# Async test backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_resquel_logger() -> Iterator[None]:
    """The CLI reconfigures the 'resquel' logger; undo it between tests."""
    yield
    root_logger: logging.Logger = logging.getLogger("resquel")
    root_logger.handlers.clear()
    root_logger.propagate = True
    root_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path: pathlib.Path) -> pathlib.Path:
    """A fresh SQLite file with an empty ``customers`` table."""
    path = tmp_path / "resquel.db"
    engine = sa.create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(sa.text(CUSTOMERS_DDL))
    engine.dispose()
    return path


@pytest.fixture()
def db_url(db_path: pathlib.Path) -> str:
    return f"sqlite+aiosqlite:///{db_path}"


# ---------------------------------------------------------------------------
# Raw config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_config() -> Dict[str, Any]:
    """Load the reference resquel_example.yaml once per session."""
    assert CONFIG_EXAMPLE_PATH.exists(), (
        f"Reference config not found at {CONFIG_EXAMPLE_PATH}. "
        "Make sure resquel_example.yaml is in the project root."
    )
    with open(CONFIG_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_config(raw_example_config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_config)


def _customer_routes() -> List[Dict[str, Any]]:
    return [
        {"method": "POST", "endpoint": "/customer", "table": "customers"},
        {"method": "GET", "endpoint": "/customer", "table": "customers"},
        {"method": "GET", "endpoint": "/customer/:id", "table": "customers"},
        {"method": "PUT", "endpoint": "/customer/:id", "table": "customers"},
        {"method": "DELETE", "endpoint": "/customer/:id", "table": "customers"},
    ]


@pytest.fixture()
def make_config(db_url: str) -> Callable[..., Dict[str, Any]]:
    """
    Build a raw config over the ``customers`` table.

    Keyword arguments are merged into the ``db`` section; ``routes``
    replaces the default five CRUD routes.
    """

    def _make(routes: Any = None, **db: Any) -> Dict[str, Any]:
        return {
            "db": {"url": db_url, **db},
            "routes": _customer_routes() if routes is None else routes,
        }

    return _make


@pytest.fixture()
def customer_routes() -> List[Dict[str, Any]]:
    return _customer_routes()


@pytest.fixture(params=["returning", "refetch"])
def result_strategy(request: pytest.FixtureRequest) -> str:
    """Run a test once per normalizer family."""
    return request.param


# ---------------------------------------------------------------------------
# Hook helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def events() -> List[str]:
    return []


@pytest.fixture()
def recording_hook(events: List[str]) -> Callable[[str], Callable[..., None]]:
    """Factory: a hook that appends *label* to ``events`` and proceeds."""

    def _factory(label: str) -> Callable[..., None]:
        def hook(context: RequestContext, proceed: Callable[[], None]) -> None:
            events.append(label)
            proceed()

        hook.__name__ = f"record_{label}"
        return hook

    return _factory


@pytest.fixture()
def customer_payload() -> Dict[str, Any]:
    return {"data": {"firstName": "A", "lastName": "B", "email": "a@b.com"}}
