import sqlite3
import logging
from typing import Any
from pathlib import Path

log = logging.getLogger(__name__)


class FileAdapter:
    """
    Desktop file database backed by SQLite.

    The connection string is either a filesystem path or a SQLite URI
    ("file:/path/to/db?mode=ro").
    """

    name = "file"
    paramstyle = sqlite3.paramstyle

    def __init__(self, timeout: float = 3.0):
        self.timeout = timeout

    def connect(self, connection_string: str) -> Any:
        target = (connection_string or "").strip()
        if not target:
            raise ValueError("File database path is empty.")
        if target.startswith("file:"):
            log.info("FileAdapter opening URI: %s", target)
            return sqlite3.connect(target, uri=True, timeout=self.timeout)

        path = Path(target).resolve()
        if not path.exists():
            raise FileNotFoundError(f"File database does not exist: {path}")
        log.info("FileAdapter opening: %s", path)
        return sqlite3.connect(str(path), timeout=self.timeout)
