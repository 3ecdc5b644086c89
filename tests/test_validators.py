"""
tests/test_validators.py
Unit tests for resquel.validators.

Tests cover:
- Endpoint shape per method (placeholders, leading slash)
- SQL identifier checks and reserved-word warnings
- Duplicate route detection
- Database driver checks
- Full validation pipeline (validate_full) and its report
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from resquel.models import DatabaseConfig, ResquelConfig
from resquel.validators import (
    ValidationResult,
    validate_database,
    validate_duplicate_routes,
    validate_endpoints,
    validate_full,
    validate_identifiers,
)

ASYNC_URL: str = "sqlite+aiosqlite:///./test.db"


def _config(routes: List[Dict[str, Any]], url: str = ASYNC_URL) -> ResquelConfig:
    return ResquelConfig.model_validate({"db": url, "routes": routes})


def _route(method: str, endpoint: str, table: str = "customers", **extra: Any) -> Dict[str, Any]:
    return {"method": method, "endpoint": endpoint, "table": table, **extra}


# ===========================================================================
# ValidationResult container
# ===========================================================================


class TestValidationResult:
    def test_empty_result_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert result.codes == []

    def test_error_makes_invalid(self) -> None:
        result = ValidationResult()
        result.add_warning("W", "warn")
        assert result.is_valid
        result.add_error("E", "boom", {"route": 0})
        assert not result.is_valid
        assert result.codes == ["W", "E"]
        assert "1 error(s), 1 warning(s)" in result.summary()

    def test_merge(self) -> None:
        a, b = ValidationResult(), ValidationResult()
        a.add_warning("W", "warn")
        b.add_error("E", "err")
        a.merge(b)
        assert a.codes == ["W", "E"]
        assert a.has_errors

    def test_format_report_includes_context(self) -> None:
        result = ValidationResult()
        result.add_error("E", "bad route", {"endpoint": "/x"})
        report = result.format_report()
        assert "[E] bad route" in report
        assert "endpoint: /x" in report


# ===========================================================================
# Endpoints
# ===========================================================================


class TestValidateEndpoints:
    def test_crud_routes_pass(self, customer_routes: List[Dict[str, Any]]) -> None:
        result = validate_endpoints(_config(customer_routes))
        assert result.is_valid
        assert result.warnings == []

    @pytest.mark.parametrize("method", ["PUT", "DELETE"])
    def test_keyed_method_without_placeholder(self, method: str) -> None:
        result = validate_endpoints(_config([_route(method, "/customer")]))
        assert "MISSING_PATH_PARAMETER" in result.codes
        assert result.has_errors

    def test_too_many_placeholders(self) -> None:
        result = validate_endpoints(_config([_route("GET", "/org/:org/customer/:id")]))
        assert "TOO_MANY_PATH_PARAMETERS" in result.codes

    def test_relative_endpoint(self) -> None:
        result = validate_endpoints(_config([_route("GET", "customer")]))
        assert "ENDPOINT_NOT_ABSOLUTE" in result.codes

    def test_post_with_placeholder_only_warns(self) -> None:
        result = validate_endpoints(_config([_route("POST", "/customer/:id")]))
        assert result.is_valid
        assert "POST_PATH_PARAMETER_IGNORED" in result.codes


# ===========================================================================
# Identifiers
# ===========================================================================


class TestValidateIdentifiers:
    @pytest.mark.parametrize(
        "extra, code",
        [
            ({"table": "cust omers"}, "INVALID_TABLE_NAME"),
            ({"key": "id;--"}, "INVALID_KEY_NAME"),
            ({"schema_name": "a.b"}, "INVALID_SCHEMA_NAME"),
            ({"columns": ["ok", "not ok"]}, "INVALID_COLUMN_NAME"),
        ],
    )
    def test_invalid_names(self, extra: Dict[str, Any], code: str) -> None:
        route = {**_route("GET", "/customer/:id"), **extra}
        result = validate_identifiers(_config([route]))
        assert code in result.codes
        assert result.has_errors

    def test_reserved_word_warns(self) -> None:
        result = validate_identifiers(_config([_route("GET", "/u", table="user")]))
        assert result.is_valid
        assert "TABLE_NAME_SQL_RESERVED" in result.codes

    def test_duplicate_column(self) -> None:
        result = validate_identifiers(
            _config([_route("POST", "/c", columns=["email", "email"])])
        )
        assert "DUPLICATE_COLUMN_NAME" in result.codes

    def test_empty_whitelist_warns(self) -> None:
        result = validate_identifiers(_config([_route("POST", "/c", columns=[])]))
        assert result.is_valid
        assert "NO_WRITABLE_COLUMNS" in result.codes


# ===========================================================================
# Duplicates / database
# ===========================================================================


class TestValidateDuplicateRoutes:
    def test_same_shape_different_param_name(self) -> None:
        result = validate_duplicate_routes(
            _config([_route("GET", "/customer/:id"), _route("GET", "/customer/{key}")])
        )
        assert result.codes == ["DUPLICATE_ROUTE"]

    def test_same_path_different_method_is_fine(self) -> None:
        result = validate_duplicate_routes(
            _config([_route("GET", "/customer/:id"), _route("PUT", "/customer/:id")])
        )
        assert result.is_valid


class TestValidateDatabase:
    def test_async_driver_passes(self) -> None:
        assert validate_database(DatabaseConfig(url=ASYNC_URL)).is_valid

    def test_sync_driver_rejected(self) -> None:
        result = validate_database(DatabaseConfig(url="sqlite:///./test.db"))
        assert result.codes == ["ASYNC_DRIVER_REQUIRED"]

    def test_unknown_dialect(self) -> None:
        result = validate_database(DatabaseConfig(url="nosuchdb://host/db"))
        assert result.codes == ["UNKNOWN_DIALECT"]


# ===========================================================================
# Full pipeline
# ===========================================================================


class TestValidateFull:
    def test_example_config_is_valid(self, example_config: Dict[str, Any]) -> None:
        result = validate_full(ResquelConfig.model_validate(example_config))
        assert result.is_valid, result.format_report()

    def test_collects_every_problem(self) -> None:
        config = _config(
            [
                _route("PUT", "/customer"),
                _route("GET", "/x", table="bad name"),
            ],
            url="sqlite:///./sync.db",
        )
        result = validate_full(config)
        assert {"MISSING_PATH_PARAMETER", "INVALID_TABLE_NAME", "ASYNC_DRIVER_REQUIRED"} <= set(
            result.codes
        )
