from __future__ import annotations

import pytest

from sqlconnect.errors.codes import ErrorCode
from sqlconnect.errors.exceptions import InsufficientParameters, UnknownStatement
from sqlconnect.statements import StatementRegistry, splice, strip_quotes
from sqlconnect.types import DatabaseKind


@pytest.fixture()
def registry() -> StatementRegistry:
    r = StatementRegistry(server_name="SQL1", database_name="Sales")
    r.register(
        "by_customer",
        "SELECT * FROM $s.$d.dbo.orders WHERE customer = '$p' AND year = $p",
    )
    return r


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------


def test_expand_substitutes_server_database_and_params(registry):
    sql = registry.expand("by_customer", ["C001", "2024"])
    assert sql == (
        "SELECT * FROM SQL1.Sales.dbo.orders WHERE customer = 'C001' AND year = 2024"
    )


def test_expand_is_deterministic(registry):
    params = ["C001", "2024"]
    assert registry.expand("by_customer", params) == registry.expand(
        "by_customer", params
    )


def test_expand_strips_single_quotes_from_params(registry):
    sql = registry.expand("by_customer", ["O'Brien'; DROP TABLE x --", "2024"])
    assert "O'Brien" not in sql
    assert "'OBrien; DROP TABLE x --'" in sql


def test_expand_ignores_extra_params(registry):
    exact = registry.expand("by_customer", ["C001", "2024"])
    extra = registry.expand("by_customer", ["C001", "2024", "ignored", "also"])
    assert extra == exact


def test_expand_with_too_few_params_fails_without_partial_output(registry):
    with pytest.raises(InsufficientParameters) as exc:
        registry.expand("by_customer", ["C001"])

    err = exc.value
    assert err.code == ErrorCode.INSUFFICIENT_PARAMETERS
    assert err.required == 2
    assert err.provided == 1
    # the raw template (not a half-built statement) is reported
    assert err.template.endswith("year = $p")
    assert "Statement requires 2 parameters" in str(err)


def test_expand_with_none_params_and_markers_fails(registry):
    with pytest.raises(InsufficientParameters):
        registry.expand("by_customer", None)


def test_expand_without_markers_returns_text_and_ignores_params():
    r = StatementRegistry(server_name="S", database_name="D")
    r.register("count", "SELECT COUNT(*) FROM $d.dbo.t")
    assert r.expand("count", ["unused"]) == "SELECT COUNT(*) FROM D.dbo.t"
    assert r.expand("count") == "SELECT COUNT(*) FROM D.dbo.t"


def test_expand_unknown_statement():
    r = StatementRegistry()
    with pytest.raises(UnknownStatement) as exc:
        r.expand("missing", [])
    assert exc.value.code == ErrorCode.UNKNOWN_STATEMENT
    assert "missing" in str(exc.value)


def test_server_and_database_markers_are_plain_substring_replacements():
    r = StatementRegistry(server_name="SRV", database_name="DB")
    r.register("lit", "SELECT '$s$d' AS marker")
    assert r.expand("lit") == "SELECT 'SRVDB' AS marker"


def test_params_are_inserted_after_server_database_substitution():
    # A parameter containing "$d" is not re-expanded.
    r = StatementRegistry(server_name="SRV", database_name="DB")
    r.register("p", "SELECT $p")
    assert r.expand("p", ["$d"]) == "SELECT $d"


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_replaces_existing_template(registry):
    registry.register("by_customer", "SELECT $p AS only_one", DatabaseKind.FILE)
    assert registry.expand("by_customer", ["1", "2"]) == "SELECT 1 AS only_one"
    assert registry.get("by_customer").kind == DatabaseKind.FILE
    assert len(registry) == 1


def test_register_accepts_kind_as_string_and_override_connection():
    r = StatementRegistry()
    tpl = r.register("x", "SELECT 1", "odbc_po", "DSN=other")
    assert tpl.kind == DatabaseKind.ODBC_PO
    assert tpl.connection_string == "DSN=other"
    assert "x" in r


def test_register_rejects_unknown_kind():
    r = StatementRegistry()
    with pytest.raises(ValueError):
        r.register("x", "SELECT 1", "nosuchkind")


# ---------------------------------------------------------------------------
# Helpers + YAML loading
# ---------------------------------------------------------------------------


def test_strip_quotes_keeps_none():
    assert strip_quotes(["a'b", None, "''"]) == ["ab", None, ""]
    assert strip_quotes(None) == []


@pytest.mark.parametrize(
    "text,params,expected",
    [
        ("$p", ["x"], "x"),
        ("a$pb$pc", ["1", "2"], "a1b2c"),
        ("$p$p", ["1", "2"], "12"),
        ("no markers", [], "no markers"),
    ],
)
def test_splice(text, params, expected):
    assert splice(text, params) == expected


def test_load_yaml_registers_statements(tmp_path):
    cfg = tmp_path / "statements.yaml"
    cfg.write_text(
        "statements:\n"
        "  orders:\n"
        "    sql: SELECT * FROM $d.dbo.orders WHERE id = $p\n"
        "    kind: server\n"
        "  local:\n"
        "    sql: SELECT 1\n"
        "    kind: file\n"
        "    connection_string: /tmp/x.db\n"
        "  short: SELECT 2\n",
        encoding="utf-8",
    )
    r = StatementRegistry(database_name="Sales")
    assert r.load_yaml(cfg) == 3
    assert r.expand("orders", ["7"]) == "SELECT * FROM Sales.dbo.orders WHERE id = 7"
    assert r.get("local").connection_string == "/tmp/x.db"
    assert r.get("short").kind == DatabaseKind.SERVER


def test_load_yaml_rejects_entry_without_sql(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("statements:\n  broken:\n    kind: server\n", encoding="utf-8")
    with pytest.raises(ValueError):
        StatementRegistry().load_yaml(cfg)


def test_shipped_statements_config_loads():
    from sqlconnect.settings import DEFAULT_STATEMENTS_CONFIG

    r = StatementRegistry(database_name="Sales")
    assert r.load_yaml(DEFAULT_STATEMENTS_CONFIG) >= 1
