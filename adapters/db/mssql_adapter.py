import logging
from typing import Any, Dict

from adapters.db.base import mask_connection_string, parse_connection_string

log = logging.getLogger(__name__)

# ADO-style keys -> pymssql.connect keyword arguments
_KEY_MAP = {
    "data source": "server",
    "server": "server",
    "initial catalog": "database",
    "database": "database",
    "user id": "user",
    "uid": "user",
    "password": "password",
    "pwd": "password",
    "application name": "appname",
}


def connect_kwargs(connection_string: str, default_timeout: int = 300) -> Dict[str, Any]:
    """
    Translate an ADO-style connection string into pymssql.connect() kwargs.

    Example:
        "data source=SQL1;initial catalog=Sales;user id=app;password=x;Connect Timeout=30"
        -> {"server": "SQL1", "database": "Sales", "user": "app",
            "password": "x", "login_timeout": 30}
    """
    parts = parse_connection_string(connection_string)
    kwargs: Dict[str, Any] = {}
    for key, value in parts.items():
        target = _KEY_MAP.get(key)
        if target and value:
            kwargs[target] = value

    raw_timeout = parts.get("connect timeout") or parts.get("connection timeout")
    try:
        kwargs["login_timeout"] = int(float(raw_timeout)) if raw_timeout else default_timeout
    except ValueError:
        kwargs["login_timeout"] = default_timeout
    return kwargs


class ServerAdapter:
    """Relational server (Microsoft SQL Server) through pymssql."""

    name = "server"
    paramstyle = "pyformat"

    def __init__(self, connect_timeout: int = 300):
        self.connect_timeout = connect_timeout

    def connect(self, connection_string: str) -> Any:
        import pymssql

        kwargs = connect_kwargs(connection_string, default_timeout=self.connect_timeout)
        if not kwargs.get("server"):
            raise ValueError("Connection string has no data source / server.")
        log.info(
            "ServerAdapter connecting: %s", mask_connection_string(connection_string)
        )
        return pymssql.connect(**kwargs)
