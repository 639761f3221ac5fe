from __future__ import annotations

import logging
import time
from contextlib import closing
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from sqlconnect.errors.codes import ErrorCode
from sqlconnect.errors.exceptions import SqlConnectError
from sqlconnect.normalizer import column_names
from sqlconnect.types import Outcome, Trace

log = logging.getLogger(__name__)

# (columns, row iterator) -> payload; runs while the cursor is still open
RowConsumer = Callable[[List[str], Iterable[Sequence[Any]]], Any]


class DBAdapter(Protocol):
    """Driver capability: open a DB-API connection from a connection string."""

    name: str
    # DB-API paramstyle of the driver ("qmark", "pyformat", ...)
    paramstyle: str

    def connect(self, connection_string: str) -> Any:
        """Return an open DB-API connection. Raise on failure."""


_SECRET_KEYS = {"pwd", "password"}


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split "key=value;key=value" into a dict with lowercased keys."""
    parts: Dict[str, str] = {}
    for chunk in (connection_string or "").split(";"):
        if "=" not in chunk:
            continue
        key, _, value = chunk.partition("=")
        parts[key.strip().lower()] = value.strip()
    return parts


def mask_connection_string(connection_string: str) -> str:
    masked = []
    for chunk in (connection_string or "").split(";"):
        key, sep, _ = chunk.partition("=")
        if sep and key.strip().lower() in _SECRET_KEYS:
            masked.append(f"{key}=***")
        else:
            masked.append(chunk)
    return ";".join(masked)


def placeholder_for(paramstyle: str) -> str:
    """Positional placeholder for bound parameters in the given paramstyle."""
    if paramstyle in ("format", "pyformat"):
        return "%s"
    return "?"


def execute(
    adapter: DBAdapter,
    connection_string: str,
    sql: str,
    *,
    wants_rows: bool,
    consume: Optional[RowConsumer] = None,
    params: Optional[Sequence[Any]] = None,
) -> Outcome:
    """
    Run one statement on a fresh connection and close it on every path.

    Every successful statement is committed. Non-queries return the rowcount
    as ``data``. Row queries hand the open cursor to ``consume`` and return
    whatever it builds; a statement without a result set is consumed as zero
    columns and zero rows. Failures come back as a non-ok Outcome; nothing is
    raised.
    """
    t0 = time.perf_counter()

    def _trace(summary: str, **notes: Any) -> Trace:
        return Trace(
            stage="driver",
            duration_ms=(time.perf_counter() - t0) * 1000,
            summary=summary,
            notes={"adapter": adapter.name, "wants_rows": wants_rows, **notes},
        )

    log.debug("Executing on %s: %s", adapter.name, sql.strip().replace("\n", " "))
    try:
        with closing(adapter.connect(connection_string)) as conn:
            cursor = conn.cursor()
            if cursor is None:
                log.error("No cursor returned on %s", adapter.name)
                return Outcome(
                    ok=False,
                    error=[f"{sql}: Lost Reader"],
                    error_code=ErrorCode.LOST_READER,
                    trace=_trace("lost_reader"),
                    statement=sql,
                )

            with closing(cursor) as cur:
                if params:
                    cur.execute(sql, tuple(params))
                else:
                    cur.execute(sql)

                if not wants_rows:
                    rowcount = cur.rowcount
                    conn.commit()
                    return Outcome(
                        ok=True,
                        data=rowcount,
                        trace=_trace("ok", rowcount=rowcount),
                        statement=sql,
                    )

                # No description: the statement produced no result set.
                if cur.description is None:
                    cols: List[str] = []
                    payload = consume(cols, ()) if consume else None
                else:
                    cols = column_names(cur.description)
                    payload = consume(cols, cur) if consume else None
                # Row statements may write too (EXEC, INSERT ... RETURNING).
                conn.commit()
                return Outcome(
                    ok=True,
                    data=payload,
                    trace=_trace("ok", col_count=len(cols)),
                    statement=sql,
                )
    except SqlConnectError as e:
        log.warning("Result normalization failed on %s: %s", adapter.name, e)
        return Outcome(
            ok=False,
            error=[f"{sql}: {e}"],
            error_code=e.code,
            trace=_trace("failed", error_type=type(e).__name__),
            statement=sql,
        )
    except Exception as e:
        log.warning("Driver %s failed: %s", adapter.name, e)
        return Outcome(
            ok=False,
            error=[f"{sql}: {e}"],
            error_code=ErrorCode.DRIVER_ERROR,
            trace=_trace("failed", error_type=type(e).__name__),
            statement=sql,
        )
