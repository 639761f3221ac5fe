from __future__ import annotations

import sqlite3
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from sqlconnect.settings import Settings
from sqlconnect.types import DatabaseKind

# (sql, params) -> (columns or None, rows) | Exception
Responder = Callable[[str, Optional[Sequence[Any]]], Any]


@pytest.fixture()
def sqlite_db(tmp_path):
    """A small file database with text, NULL and BLOB values."""
    db_path = tmp_path / "file.db"
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(
            "CREATE TABLE customers(id INTEGER, name TEXT, note TEXT, badge BLOB);"
        )
        conn.execute(
            "INSERT INTO customers VALUES (1, 'Alice', 'O&#39;Brien', X'0A1F');"
        )
        conn.execute("INSERT INTO customers VALUES (2, 'Bob', NULL, NULL);")
        conn.execute("INSERT INTO customers VALUES (3, 'Carol', '', X'');")
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def settings(sqlite_db):
    return Settings(
        server_name="SQL1",
        database_name="db",
        server_uid="app",
        server_pwd="secret",
        workstation_id="ws1",
        recipes={
            DatabaseKind.FILE: str(sqlite_db),
            DatabaseKind.SERVER: "data source={server};initial catalog={database};user id={uid};password={pwd}",
            DatabaseKind.STORED_PROCEDURE: "data source={server};initial catalog={database};user id={uid};password={pwd}",
        },
        statements_config_path="does-not-exist.yaml",
    )


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.description: Optional[List[Tuple[str]]] = None
        self.rowcount = -1
        self._rows: Iterable[Tuple[Any, ...]] = []
        self.closed = False

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        self.conn.executed.append((sql, params))
        resp = self.conn.responder(sql, params)
        if isinstance(resp, Exception):
            raise resp
        cols, rows = resp
        self.description = [(c,) for c in cols] if cols is not None else None
        self._rows = rows
        self.rowcount = len(rows) if isinstance(rows, list) else -1

    def __iter__(self):
        return iter(self._rows)

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.executed: List[Tuple[str, Optional[Sequence[Any]]]] = []
        self.committed = False
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.committed = True

    def close(self) -> None:
        self.closed = True


class FakeServerAdapter:
    """Stands in for the SQL Server driver; records every connection."""

    name = "server"
    paramstyle = "pyformat"

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.connections: List[FakeConnection] = []
        self.connection_strings: List[str] = []

    def connect(self, connection_string: str) -> FakeConnection:
        self.connection_strings.append(connection_string)
        conn = FakeConnection(self.responder)
        self.connections.append(conn)
        return conn

    @property
    def executed(self) -> List[Tuple[str, Optional[Sequence[Any]]]]:
        return [e for c in self.connections for e in c.executed]


def procedure_responder(
    catalog: Dict[str, List[str]],
    result: Tuple[List[str], List[Tuple[Any, ...]]] = (["status"], [("done",)]),
) -> Responder:
    """
    Serve parameter metadata for the procedures in ``catalog``
    (name -> declared SQL type names) and ``result`` for any EXEC.
    """
    unquoted = {
        "tinyint", "smallint", "real", "money", "float", "bit",
        "decimal", "numeric", "smallmoney", "bigint", "int",
    }

    def respond(sql: str, params: Optional[Sequence[Any]]) -> Any:
        if "sys.objects" in sql:
            name = params[0] if params else None
            if name not in catalog:
                return (["parameter_id", "needs_quote"], [])
            types = catalog[name]
            if not types:
                return (["parameter_id", "needs_quote"], [(None, None)])
            return (
                ["parameter_id", "needs_quote"],
                [(i + 1, 0 if t in unquoted else 1) for i, t in enumerate(types)],
            )
        if sql.startswith("EXEC"):
            return result
        return RuntimeError(f"unexpected statement: {sql}")

    return respond


@pytest.fixture()
def fake_server():
    """Factory: fake_server(catalog, result=...) -> FakeServerAdapter."""

    def make(catalog: Dict[str, List[str]], **kwargs: Any) -> FakeServerAdapter:
        return FakeServerAdapter(procedure_responder(catalog, **kwargs))

    return make


@pytest.fixture()
def fake_connection():
    """Factory for a bare FakeConnection driven by a responder."""
    return FakeConnection
