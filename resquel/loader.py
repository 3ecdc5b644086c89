# File: resquel/loader.py
"""
Resquel - Configuration File Loader
===================================
Reads a route configuration from JSON or YAML and parses it into a
``ResquelConfig``.

Expected document::

    db:
      url: sqlite+aiosqlite:///./app.db
    routes:
      - method: get
        endpoint: /customer
        table: customers
      - method: put
        endpoint: /customer/:id
        table: customers
        before: [resquel.hooks:log_request]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from resquel.models import ResquelConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel.loader")


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix == ".json":
        return _load_json_file(path)
    # YAML is a superset of JSON, so anything else goes through the YAML parser.
    return _load_yaml_file(path)


def parse_raw_config(
    raw: Mapping[str, Any],
    *,
    database_url: Optional[str] = None,
) -> ResquelConfig:
    """
    Parse a raw mapping into a validated ``ResquelConfig``.

    Args:
        raw: Document with ``db`` and ``routes`` keys.
        database_url: Replaces ``db.url`` when given (CLI / environment).

    Raises:
        ValueError: If required keys are missing or the models reject the data.
    """
    if "routes" not in raw:
        raise ValueError("Cannot find 'routes' in configuration.")

    data: Dict[str, Any] = dict(raw)
    if database_url is not None:
        db: Any = data.get("db")
        db_data: Dict[str, Any] = dict(db) if isinstance(db, Mapping) else {}
        db_data["url"] = database_url
        data["db"] = db_data
    elif "db" not in data:
        raise ValueError("Cannot find 'db' in configuration and no database URL was given.")

    try:
        config: ResquelConfig = ResquelConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    logger.info("Parsed configuration: %d route(s).", len(config.routes))
    return config


def read_config(path: Path, *, database_url: Optional[str] = None) -> ResquelConfig:
    """Load and parse a configuration file in one step."""
    return parse_raw_config(load_config_file(path), database_url=database_url)


__all__: List[str] = [
    "load_config_file",
    "parse_raw_config",
    "read_config",
]
