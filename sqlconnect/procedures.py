from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from sqlconnect.errors.exceptions import ParameterCountMismatch, ProcedureNotFound
from sqlconnect.statements import strip_quotes
from sqlconnect.types import Outcome, ResultGrid

log = logging.getLogger(__name__)

NULL_SENTINEL = "NULL"

# Parameters of these SQL types are emitted without quotes
UNQUOTED_TYPES = (
    "tinyint",
    "smallint",
    "real",
    "money",
    "float",
    "bit",
    "decimal",
    "numeric",
    "smallmoney",
    "bigint",
    "int",
)

# (sql, bound params) -> Outcome whose data is a ResultGrid
MetadataRunner = Callable[[str, Sequence[str]], Outcome]


def normalize_name(procedure: str, prefix: str = "pr_") -> str:
    if prefix and not procedure.startswith(prefix):
        return prefix + procedure
    return procedure


def metadata_query(database: str, placeholder: str = "%s") -> str:
    """
    One row per declared parameter in declaration order, plus a single row
    with NULL parameter_id for a procedure that takes no parameters. Only
    SQL and CLR procedures match; a table or view of the same name does not.
    """
    unquoted = ", ".join(f"'{t}'" for t in UNQUOTED_TYPES)
    return (
        "SELECT p.parameter_id AS parameter_id, "
        f"CASE WHEN t.name IN ({unquoted}) THEN 0 ELSE 1 END AS needs_quote "
        f"FROM {database}.sys.objects o "
        f"LEFT JOIN {database}.sys.parameters p ON p.object_id = o.object_id "
        f"LEFT JOIN {database}.sys.types t ON t.user_type_id = p.user_type_id "
        f"WHERE o.name = {placeholder} AND o.type IN ('P', 'PC') "
        "ORDER BY p.parameter_id"
    )


def quote_flags(grid: ResultGrid) -> List[bool]:
    flags: List[bool] = []
    for i in range(grid.row_count):
        parameter_id, needs_quote = grid.cell(0, i), grid.cell(1, i)
        if parameter_id is None:
            continue
        flags.append(needs_quote == "1")
    return flags


def render_arguments(flags: Sequence[bool], values: Sequence[Optional[str]]) -> str:
    args: List[str] = []
    for needs_quote, value in zip(flags, values):
        text = NULL_SENTINEL if value is None else value
        if needs_quote and text != NULL_SENTINEL:
            args.append(f"'{text}'")
        else:
            args.append(text)
    return ", ".join(args)


class ProcedureTyper:
    """
    Builds `EXEC <db>.dbo.<proc> ...` statements, quoting each argument
    according to the declared SQL type of the matching parameter.
    """

    name = "typer"

    def __init__(
        self,
        run_metadata: MetadataRunner,
        *,
        prefix: str = "pr_",
        placeholder: str = "%s",
    ) -> None:
        self.run_metadata = run_metadata
        self.prefix = prefix
        self.placeholder = placeholder

    def build(
        self,
        server: str,
        database: str,
        procedure: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
    ) -> str:
        values = strip_quotes(parameters)
        proc = normalize_name(procedure, self.prefix)

        res = self.run_metadata(metadata_query(database, self.placeholder), [proc])
        grid = res.data if res.ok else None
        if not isinstance(grid, ResultGrid) or grid.row_count == 0:
            log.warning(
                "Stored procedure lookup failed",
                extra={"procedure": proc, "server": server, "database": database},
            )
            raise ProcedureNotFound(
                name=proc,
                server=server,
                database=database,
                cause="" if res.ok else res.message,
            )

        flags = quote_flags(grid)
        if len(flags) > len(values):
            raise ParameterCountMismatch(
                name=proc, declared=len(flags), provided=len(values)
            )

        statement = f"EXEC {database}.dbo.{proc}"
        args = render_arguments(flags, values)
        return f"{statement} {args}" if args else statement
