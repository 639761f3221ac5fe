"""
Compatibility facade with shared "last result" slots.

Callers that read results from attributes after a boolean call use this
instead of the Dispatcher. The slots are shared by everything that holds the
same helper, so every call takes a single-writer lock for its whole duration
and clears the slots before doing anything else. Prefer the Outcome returned
by ``Dispatcher`` in new code.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Optional, Sequence

from adapters.metrics.prometheus import PrometheusMetrics
from sqlconnect.dispatcher import Dispatcher
from sqlconnect.errors.exceptions import SqlConnectError
from sqlconnect.factory import build_dispatcher
from sqlconnect.serialization import to_json
from sqlconnect.types import DatabaseKind, Outcome, OutputKind, ResultGrid, RowSet


class QueryHelper:
    def __init__(self, dispatcher: Optional[Dispatcher] = None) -> None:
        self.dispatcher = dispatcher or build_dispatcher(metrics=PrometheusMetrics())
        self._lock = threading.Lock()

        self.last_error: str = ""
        self.column_names: Optional[list[str]] = None
        self.results: Optional[ResultGrid] = None
        self.json_results: Optional[str] = None

    def initialize(
        self,
        server: str = "",
        database: str = "",
        odbc_uid: str = "",
        odbc_pwd: str = "",
    ) -> None:
        """
        Set the default server/database and the ODBC credentials for this
        helper's dispatcher only; shared settings are left untouched.
        """
        with self._lock:
            self.dispatcher.settings = replace(
                self.dispatcher.settings,
                server_name=server,
                database_name=database,
                odbc_uid=odbc_uid,
                odbc_pwd=odbc_pwd,
            )

    def add_statement(
        self,
        name: str,
        sql: str,
        kind: DatabaseKind | str = DatabaseKind.SERVER,
        connection_string: Optional[str] = None,
    ) -> None:
        self.dispatcher.statements.register(name, sql, kind, connection_string)

    def get_statement(
        self, name: str, parameters: Optional[Sequence[Optional[str]]] = None
    ) -> str:
        """The constructed statement, or "" with ``last_error`` set."""
        with self._lock:
            self._reset()
            try:
                return self.dispatcher.expand(name, parameters)
            except SqlConnectError as e:
                self.last_error = str(e)
                return ""

    def do_prepared_query(
        self,
        name: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        output: OutputKind | str = OutputKind.NONE,
    ) -> bool:
        with self._lock:
            self._reset()
            res = self.dispatcher.run_named(name, parameters, output)
            return self._store(res)

    def do_query(
        self,
        statement: str,
        output: OutputKind | str = OutputKind.NONE,
        kind: DatabaseKind | str = DatabaseKind.SERVER,
        connection_string: Optional[str] = None,
    ) -> bool:
        with self._lock:
            self._reset()
            res = self.dispatcher.run(
                statement, kind, output, connection_string=connection_string
            )
            return self._store(res)

    def do_sp_query(
        self,
        name: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        output: OutputKind | str = OutputKind.NONE,
    ) -> bool:
        with self._lock:
            self._reset()
            res = self.dispatcher.run_procedure(name, parameters, output)
            return self._store(res)

    def clone_results(self) -> Optional[ResultGrid]:
        """An unshared copy of the last grid."""
        with self._lock:
            return self.results.copy() if self.results is not None else None

    # ---------------------------- internals ----------------------------
    def _reset(self) -> None:
        self.last_error = ""
        self.column_names = None
        self.results = None
        self.json_results = None

    def _store(self, res: Outcome) -> bool:
        if not res.ok:
            self.last_error = res.message
            return False
        if isinstance(res.data, ResultGrid):
            self.results = res.data
            self.column_names = list(res.data.columns)
        elif isinstance(res.data, RowSet):
            self.json_results = to_json(res.data)
        return True
