from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlconnect.errors.codes import ErrorCode


Cell = Optional[str]


class DatabaseKind(str, Enum):
    """Selects both the driver variant and the connection-string recipe."""

    FILE = "file"
    ODBC = "odbc"
    ODBC_FILES = "odbc_files"
    ODBC_PO = "odbc_po"
    SERVER = "server"
    STORED_PROCEDURE = "stored_procedure"


class OutputKind(str, Enum):
    NONE = "none"
    ARRAY = "array"
    ROWS = "rows"


@dataclass(frozen=True)
class StatementTemplate:
    name: str
    text: str
    kind: DatabaseKind = DatabaseKind.SERVER
    connection_string: Optional[str] = None


# =====================
# Result payloads
# =====================


@dataclass
class RowSet:
    """
    Row-list payload handed to the serialization collaborator.
    Shape: {"columns": [...], "rows": [[...], ...]}
    """

    columns: List[str] = field(default_factory=list)
    rows: List[List[Cell]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {"columns": list(self.columns), "rows": [list(r) for r in self.rows]}


@dataclass
class ResultGrid:
    """
    Rectangular payload, column-major: ``cells[column][row]``.
    Dimensions are [column_count, row_count].
    """

    columns: List[str] = field(default_factory=list)
    cells: List[List[Cell]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.columns), self.row_count

    def cell(self, column: int, row: int) -> Cell:
        return self.cells[column][row]

    def row(self, index: int) -> List[Cell]:
        return [col[index] for col in self.cells]

    def to_rowset(self) -> RowSet:
        return RowSet(
            columns=list(self.columns),
            rows=[self.row(i) for i in range(self.row_count)],
        )

    def copy(self) -> "ResultGrid":
        return ResultGrid(
            columns=list(self.columns), cells=[list(col) for col in self.cells]
        )


# =====================
# Tracing / outcome
# =====================


@dataclass(frozen=True)
class Trace:
    stage: str
    duration_ms: float
    summary: str = ""
    notes: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Outcome:
    """Result of one execution. Owned by the caller; never shared."""

    ok: bool

    data: Optional[Any] = None
    trace: Optional[Trace] = None

    # Human-readable error messages
    error: Optional[List[str]] = None
    error_code: Optional[ErrorCode] = None

    # The statement actually sent to the backend, when one was built
    statement: Optional[str] = None

    @property
    def message(self) -> str:
        return "; ".join(self.error or [])
