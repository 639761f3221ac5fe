from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from adapters.db import base as db
from adapters.db.base import DBAdapter
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from sqlconnect.errors.exceptions import (
    MissingConnectionString,
    ParameterCountMismatch,
    ProcedureNotFound,
    SqlConnectError,
    UnknownDatabaseKind,
    UnknownOutputKind,
)
from sqlconnect.normalizer import Normalizer
from sqlconnect.procedures import ProcedureTyper
from sqlconnect.registry import build_drivers
from sqlconnect.settings import Settings
from sqlconnect.statements import StatementRegistry
from sqlconnect.types import DatabaseKind, OutputKind, Outcome, Trace

log = logging.getLogger(__name__)


def _database_kind(kind: DatabaseKind | str) -> DatabaseKind:
    try:
        return DatabaseKind(kind)
    except ValueError:
        raise UnknownDatabaseKind(kind=str(kind)) from None


def _output_kind(output: OutputKind | str) -> OutputKind:
    try:
        return OutputKind(output)
    except ValueError:
        raise UnknownOutputKind(output=str(output)) from None


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


class Dispatcher:
    """
    Query dispatcher:
      connection string + driver lookup → [stored procedure typing] → driver → normalizer.

    Every call returns its own Outcome; no result state is kept between calls.
    Server and database names are read from ``settings`` at call time, for
    both `$s`/`$d` expansion and stored-procedure typing.
    """

    name = "dispatcher"

    def __init__(
        self,
        settings: Settings,
        *,
        statements: Optional[StatementRegistry] = None,
        drivers: Optional[Dict[DatabaseKind, DBAdapter]] = None,
        metrics: Metrics | None = None,
    ):
        self.settings = settings
        self.statements = statements or StatementRegistry()
        self.drivers = (
            drivers
            if drivers is not None
            else build_drivers(connect_timeout=settings.connect_timeout)
        )
        self.metrics: Metrics = metrics or NoOpMetrics()

    # ---------------------------- helpers ----------------------------
    def connection_string_for(
        self, kind: DatabaseKind, override: Optional[str] = None
    ) -> str:
        """An explicit override always wins over the configured recipe."""
        if override:
            return override
        cs = self.settings.connection_string(kind)
        if not cs:
            raise MissingConnectionString(kind=kind.value)
        return cs

    def expand(
        self, name: str, parameters: Optional[Sequence[Optional[str]]] = None
    ) -> str:
        """Expand a registered statement against the configured server/database."""
        return self.statements.expand(
            name,
            parameters,
            server_name=self.settings.server_name,
            database_name=self.settings.database_name,
        )

    def _driver(self, kind: DatabaseKind) -> DBAdapter:
        try:
            return self.drivers[kind]
        except KeyError:
            raise UnknownDatabaseKind(
                message=f"No driver registered for database kind {kind.value!r}",
                kind=kind.value,
            ) from None

    def _execute(
        self,
        kind: DatabaseKind,
        sql: str,
        output: OutputKind,
        connection_string: str,
        bind: Optional[Sequence[Any]] = None,
    ) -> Outcome:
        consume = Normalizer(
            output, unescape_apostrophes=self.settings.unescape_apostrophes
        )
        return db.execute(
            self._driver(kind),
            connection_string,
            sql,
            wants_rows=(output != OutputKind.NONE),
            consume=consume,
            params=bind,
        )

    def _typer(self, connection_string: str) -> ProcedureTyper:
        adapter = self._driver(DatabaseKind.STORED_PROCEDURE)

        def run_metadata(sql: str, params: Sequence[str]) -> Outcome:
            return self._execute(
                DatabaseKind.STORED_PROCEDURE,
                sql,
                OutputKind.ARRAY,
                connection_string,
                bind=params,
            )

        return ProcedureTyper(
            run_metadata,
            prefix=self.settings.procedure_prefix,
            placeholder=db.placeholder_for(adapter.paramstyle),
        )

    def _build_procedure(
        self, connection_string: str, name: str, parameters: Optional[Sequence[Optional[str]]]
    ) -> str:
        try:
            statement = self._typer(connection_string).build(
                self.settings.server_name,
                self.settings.database_name,
                name,
                parameters,
            )
        except ProcedureNotFound:
            self.metrics.inc_procedure_lookup(outcome="not_found")
            raise
        except ParameterCountMismatch:
            self.metrics.inc_procedure_lookup(outcome="mismatch")
            raise
        self.metrics.inc_procedure_lookup(outcome="found")
        return statement

    def _finish(
        self,
        kind: DatabaseKind | str,
        output: OutputKind | str,
        res: Outcome,
        t0: float,
    ) -> Outcome:
        dt_ms = (time.perf_counter() - t0) * 1000
        kind_label = _label(kind)
        self.metrics.observe_dispatch_duration_ms(kind=kind_label, dt_ms=dt_ms)
        self.metrics.inc_dispatch(kind=kind_label, ok=res.ok)

        notes: Dict[str, Any] = {"kind": kind_label, "output": _label(output)}
        if res.trace is not None and res.trace.notes:
            notes.update(res.trace.notes)
        if res.ok:
            log.info("Dispatch ok (%s) in %.1f ms", kind_label, dt_ms)
        else:
            code = res.error_code.value if res.error_code else "unknown"
            notes["error_code"] = code
            self.metrics.inc_error(kind=kind_label, error_code=code)
            log.warning("Dispatch failed (%s, %s): %s", kind_label, code, res.message)

        trace = Trace(
            stage=self.name,
            duration_ms=dt_ms,
            summary="ok" if res.ok else "failed",
            notes=notes,
        )
        return replace(res, trace=trace)

    @staticmethod
    def _failure(e: SqlConnectError, statement: Optional[str] = None) -> Outcome:
        return Outcome(ok=False, error=[str(e)], error_code=e.code, statement=statement)

    # ---------------------------- entry points ----------------------------
    def dispatch(
        self,
        kind: DatabaseKind | str,
        name_or_statement: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        output: OutputKind | str = OutputKind.NONE,
        *,
        connection_string: Optional[str] = None,
        bind: Optional[Sequence[Any]] = None,
    ) -> Outcome:
        """
        Execute against the backend selected by ``kind``.

        For stored procedures ``name_or_statement`` is the procedure name and
        ``parameters`` its arguments; for every other kind it is the final SQL
        text and ``bind`` (optional) holds driver-bound parameters.
        """
        t0 = time.perf_counter()
        try:
            output = _output_kind(output)
            kind = _database_kind(kind)
            cs = self.connection_string_for(kind, connection_string)
            if kind == DatabaseKind.STORED_PROCEDURE:
                statement = self._build_procedure(cs, name_or_statement, parameters)
                res = self._execute(kind, statement, output, cs)
            else:
                res = self._execute(kind, name_or_statement, output, cs, bind=bind)
        except SqlConnectError as e:
            res = self._failure(e)
        return self._finish(kind, output, res, t0)

    def run(
        self,
        statement: str,
        kind: DatabaseKind | str = DatabaseKind.SERVER,
        output: OutputKind | str = OutputKind.NONE,
        *,
        connection_string: Optional[str] = None,
        bind: Optional[Sequence[Any]] = None,
    ) -> Outcome:
        """Run a complete statement as sent."""
        return self.dispatch(
            kind, statement, None, output, connection_string=connection_string, bind=bind
        )

    def run_named(
        self,
        name: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        output: OutputKind | str = OutputKind.NONE,
    ) -> Outcome:
        """
        Run a registered statement. For a statement registered as a stored
        procedure, the expanded text is the procedure name and ``parameters``
        are its arguments.
        """
        t0 = time.perf_counter()
        try:
            tpl = self.statements.get(name)
            statement = self.expand(name, parameters)
        except SqlConnectError as e:
            return self._finish("named", output, self._failure(e), t0)

        log.debug("Expanded %s: %s", name, statement)
        if tpl.kind == DatabaseKind.STORED_PROCEDURE:
            return self.dispatch(
                tpl.kind,
                statement,
                parameters,
                output,
                connection_string=tpl.connection_string,
            )
        return self.dispatch(
            tpl.kind, statement, None, output, connection_string=tpl.connection_string
        )

    def run_procedure(
        self,
        name: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        output: OutputKind | str = OutputKind.NONE,
    ) -> Outcome:
        """Run a stored procedure on the configured default server/database."""
        return self.dispatch(DatabaseKind.STORED_PROCEDURE, name, parameters, output)
