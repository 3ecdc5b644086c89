"""
tests/test_compiler.py
Unit tests for resquel.compiler.

Statements are compiled against the SQLite dialect so the emitted SQL and
its bound parameters can be inspected without a database.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Tuple

import pytest
from sqlalchemy.dialects import sqlite

from resquel.compiler import QueryKind, QueryTemplate, compile_route, compile_routes, select_query_kind
from resquel.errors import ConfigurationError, PayloadError
from resquel.models import KeyType, RouteSpec


def _sql(stmt: Any) -> Tuple[str, Dict[str, Any]]:
    compiled = stmt.compile(dialect=sqlite.dialect())
    return str(compiled), dict(compiled.params)


def _spec(method: str, endpoint: str, **extra: Any) -> RouteSpec:
    return RouteSpec(method=method, endpoint=endpoint, table="customers", **extra)


# ===========================================================================
# Decision rule
# ===========================================================================


class TestSelectQueryKind:
    @pytest.mark.parametrize(
        "method, endpoint, kind",
        [
            ("POST", "/customer", QueryKind.INSERT),
            ("GET", "/customer", QueryKind.SELECT_ALL),
            ("GET", "/customer/:id", QueryKind.SELECT_ONE),
            ("PUT", "/customer/:id", QueryKind.UPDATE),
            ("DELETE", "/customer/:id", QueryKind.DELETE),
        ],
    )
    def test_mapping(self, method: str, endpoint: str, kind: QueryKind) -> None:
        assert select_query_kind(_spec(method, endpoint)) is kind

    @pytest.mark.parametrize("method", ["PUT", "DELETE"])
    def test_keyed_without_placeholder(self, method: str) -> None:
        with pytest.raises(ConfigurationError, match="path parameter"):
            select_query_kind(_spec(method, "/customer"))

    def test_more_than_one_placeholder(self) -> None:
        with pytest.raises(ConfigurationError, match="only one path parameter"):
            select_query_kind(_spec("GET", "/a/:x/b/:y"))


class TestCompileRoute:
    def test_template_fields(self) -> None:
        compiled = compile_route(
            _spec("PUT", "/customer/:cid", key="customer_id", columns=["email"])
        )
        tpl = compiled.template
        assert tpl.kind is QueryKind.UPDATE
        assert tpl.table == "customers"
        assert tpl.key == "customer_id"
        assert tpl.path_param == "cid"
        assert tpl.columns == frozenset({"email"})
        assert compiled.method == "PUT"
        assert compiled.path == "/customer/{cid}"
        assert compiled.name == "put_customers_customer_cid"

    def test_post_ignores_placeholder(self) -> None:
        tpl = compile_route(_spec("POST", "/customer/:id")).template
        assert tpl.kind is QueryKind.INSERT
        assert tpl.path_param is None
        assert not tpl.requires_key

    def test_compile_routes_preserves_order(self, customer_routes) -> None:
        specs = [RouteSpec(**r) for r in customer_routes]
        kinds = [c.template.kind for c in compile_routes(specs)]
        assert kinds == [
            QueryKind.INSERT,
            QueryKind.SELECT_ALL,
            QueryKind.SELECT_ONE,
            QueryKind.UPDATE,
            QueryKind.DELETE,
        ]


# ===========================================================================
# Parameter binding
# ===========================================================================


class TestBinding:
    def test_integer_key(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.SELECT_ONE, table="t", path_param="id")
        assert tpl.coerce_key({"id": "42"}) == 42

    def test_bad_integer_key(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.SELECT_ONE, table="t", path_param="id")
        with pytest.raises(PayloadError, match="valid integer"):
            tpl.coerce_key({"id": "abc"})

    def test_uuid_key(self) -> None:
        tpl = QueryTemplate(
            kind=QueryKind.DELETE, table="t", path_param="id", key_type=KeyType.UUID
        )
        value = uuid.uuid4()
        assert tpl.coerce_key({"id": str(value).upper()}) == str(value)
        with pytest.raises(PayloadError):
            tpl.coerce_key({"id": "not-a-uuid"})

    def test_string_key(self) -> None:
        tpl = QueryTemplate(
            kind=QueryKind.SELECT_ONE, table="t", path_param="slug", key_type=KeyType.STRING
        )
        assert tpl.coerce_key({"slug": "abc"}) == "abc"

    def test_missing_key(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.SELECT_ONE, table="t", path_param="id")
        with pytest.raises(PayloadError, match="Missing path parameter"):
            tpl.coerce_key({})

    @pytest.mark.parametrize("data", [None, [], "x", 3])
    def test_data_must_be_object(self, data: Any) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t")
        with pytest.raises(PayloadError, match="'data' object"):
            tpl.bind_values(data)

    def test_invalid_column_name(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t")
        with pytest.raises(PayloadError, match="Invalid column name"):
            tpl.bind_values({"name; DROP TABLE t": "x"})

    def test_column_whitelist(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t", columns=frozenset({"email"}))
        assert tpl.bind_values({"email": "a@b.com"}) == {"email": "a@b.com"}
        with pytest.raises(PayloadError, match="Unknown column"):
            tpl.bind_values({"email": "a@b.com", "is_admin": True})

    @pytest.mark.parametrize("value", [{"nested": 1}, [1, 2]])
    def test_nested_values_rejected(self, value: Any) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t")
        with pytest.raises(PayloadError, match="scalars"):
            tpl.bind_values({"firstName": value, "email": "a@b.com"})

    def test_null_and_scalars_accepted(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t")
        data = {"a": None, "b": 1, "c": 1.5, "d": True, "e": "x"}
        assert tpl.bind_values(data) == data

    def test_empty_update_rejected(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.UPDATE, table="t", path_param="id")
        with pytest.raises(PayloadError, match="at least one column"):
            tpl.bind_values({})

    def test_empty_insert_allowed(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="t")
        assert tpl.bind_values({}) == {}


# ===========================================================================
# Statements
# ===========================================================================


class TestStatements:
    def test_select_all(self) -> None:
        sql, params = _sql(QueryTemplate(kind=QueryKind.SELECT_ALL, table="customers").select_all())
        assert sql.split() == ["SELECT", "*", "FROM", "customers", "ORDER", "BY", "customers.id"]
        assert params == {}

    def test_select_one_binds_key(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.SELECT_ONE, table="customers", path_param="id")
        sql, params = _sql(tpl.select_one(7))
        assert "WHERE customers.id = ?" in sql
        assert list(params.values()) == [7]

    def test_schema_qualified(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.SELECT_ALL, table="customers", schema_name="crm")
        sql, _ = _sql(tpl.select_all())
        assert "FROM crm.customers" in sql

    def test_insert_values_are_bound(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="customers")
        hostile = "x'); DROP TABLE customers; --"
        sql, params = _sql(tpl.insert({"email": hostile}))
        assert sql == "INSERT INTO customers (email) VALUES (?)"
        assert params == {"email": hostile}
        assert "DROP" not in sql

    def test_update(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.UPDATE, table="customers", path_param="id")
        sql, params = _sql(tpl.update(3, {"email": "new@b.com"}))
        assert sql.startswith("UPDATE customers SET email=?")
        assert "WHERE customers.id = ?" in sql
        assert sorted(map(str, params.values())) == ["3", "new@b.com"]

    def test_delete(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.DELETE, table="customers", path_param="id")
        sql, params = _sql(tpl.delete(9))
        assert sql == "DELETE FROM customers WHERE customers.id = ?"
        assert list(params.values()) == [9]

    def test_mixed_case_columns_are_quoted(self) -> None:
        tpl = QueryTemplate(kind=QueryKind.INSERT, table="customers")
        sql, _ = _sql(tpl.insert({"firstName": "A"}))
        assert '"firstName"' in sql
