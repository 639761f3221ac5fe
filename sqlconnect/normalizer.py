"""
Row-set normalizer: turns a driver cursor into one of the two payload shapes.

Every value is rendered as text. Byte sequences become lowercase hex (two
digits per byte, no prefix), database NULL stays ``None`` so it can be told
apart from an empty string.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from sqlconnect.errors.exceptions import SqlConnectError
from sqlconnect.errors.codes import ErrorCode
from sqlconnect.types import Cell, OutputKind, ResultGrid, RowSet

_ENCODED_APOSTROPHE = "&#39;"


class RowShapeError(SqlConnectError):
    def __init__(self, row_index: int, width: int, expected: int) -> None:
        super().__init__(
            message=(
                f"Row {row_index} has {width} values but the result "
                f"declares {expected} columns"
            ),
            code=ErrorCode.ROW_SHAPE_MISMATCH,
        )


def bytes_to_hex(value: bytes | bytearray | memoryview) -> str:
    return bytes(value).hex()


def render_value(value: Any, *, unescape_apostrophes: bool = False) -> Cell:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes_to_hex(value)
    text = str(value)
    if unescape_apostrophes:
        # Legacy upstream HTML-encoding; only undone when asked for.
        text = text.replace(_ENCODED_APOSTROPHE, "'")
    return text


def column_names(description: Optional[Sequence[Sequence[Any]]]) -> List[str]:
    return [str(d[0]) for d in (description or ()) if d]


def normalize_rows(
    rows: Iterable[Sequence[Any]],
    width: int,
    *,
    unescape_apostrophes: bool = False,
) -> List[List[Cell]]:
    out: List[List[Cell]] = []
    for i, row in enumerate(rows):
        if len(row) != width:
            raise RowShapeError(i, len(row), width)
        out.append(
            [render_value(v, unescape_apostrophes=unescape_apostrophes) for v in row]
        )
    return out


def to_grid(columns: Sequence[str], rows: Sequence[Sequence[Cell]]) -> ResultGrid:
    """Materialize the column-major grid once every row is known."""
    cells: List[List[Cell]] = [[] for _ in columns]
    for row in rows:
        for n, value in enumerate(row):
            cells[n].append(value)
    return ResultGrid(columns=list(columns), cells=cells)


def to_rowset(columns: Sequence[str], rows: Sequence[Sequence[Cell]]) -> RowSet:
    return RowSet(columns=list(columns), rows=[list(r) for r in rows])


def shape(
    output: OutputKind, columns: Sequence[str], rows: Sequence[Sequence[Cell]]
) -> ResultGrid | RowSet | None:
    if output == OutputKind.ARRAY:
        return to_grid(columns, rows)
    if output == OutputKind.ROWS:
        return to_rowset(columns, rows)
    return None


class Normalizer:
    """Cursor consumer used by the driver runner; one instance per call."""

    name = "normalizer"

    def __init__(self, output: OutputKind, *, unescape_apostrophes: bool = False):
        self.output = output
        self.unescape_apostrophes = unescape_apostrophes

    def __call__(
        self, columns: List[str], rows: Iterable[Sequence[Any]]
    ) -> ResultGrid | RowSet | None:
        normalized = normalize_rows(
            rows, len(columns), unescape_apostrophes=self.unescape_apostrophes
        )
        return shape(self.output, columns, normalized)
