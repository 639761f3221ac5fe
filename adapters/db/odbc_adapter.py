import logging
from typing import Any

from adapters.db.base import mask_connection_string

log = logging.getLogger(__name__)


class OdbcAdapter:
    """
    Midrange (iSeries/AS400-style) sources reached through an ODBC DSN-less
    connection string, e.g. "DRIVER=iSeries Access ODBC Driver;SYSTEM=...".
    """

    name = "odbc"
    paramstyle = "qmark"

    def __init__(self, autocommit: bool = False):
        self.autocommit = autocommit

    def connect(self, connection_string: str) -> Any:
        import pyodbc

        log.info(
            "OdbcAdapter connecting: %s", mask_connection_string(connection_string)
        )
        return pyodbc.connect(connection_string, autocommit=self.autocommit)
