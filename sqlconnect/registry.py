"""
Registry mapping database kinds to concrete driver adapters.
"""

from typing import Any, Dict, Type

from adapters.db.base import DBAdapter
from adapters.db.mssql_adapter import ServerAdapter
from adapters.db.odbc_adapter import OdbcAdapter
from adapters.db.sqlite_adapter import FileAdapter
from sqlconnect.types import DatabaseKind

DRIVERS: Dict[DatabaseKind, Type[Any]] = {
    DatabaseKind.FILE: FileAdapter,
    DatabaseKind.ODBC: OdbcAdapter,
    DatabaseKind.ODBC_FILES: OdbcAdapter,
    DatabaseKind.ODBC_PO: OdbcAdapter,
    DatabaseKind.SERVER: ServerAdapter,
    DatabaseKind.STORED_PROCEDURE: ServerAdapter,
}


def build_drivers(*, connect_timeout: int = 300) -> Dict[DatabaseKind, DBAdapter]:
    """Instantiate one adapter per kind; only the server variant takes a timeout."""
    drivers: Dict[DatabaseKind, DBAdapter] = {}
    for kind, cls in DRIVERS.items():
        if cls is ServerAdapter:
            drivers[kind] = ServerAdapter(connect_timeout=connect_timeout)
        else:
            drivers[kind] = cls()
    return drivers
