from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlconnect.errors.codes import ErrorCode


@dataclass
class SqlConnectError(Exception):
    """Base class for errors raised inside the engine.

    These never escape a dispatch call: the dispatcher turns them into a
    failed ``Outcome`` carrying ``code`` and ``message``.
    """

    message: str = ""
    code: Optional[ErrorCode] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class UnknownStatement(SqlConnectError):
    name: str = ""
    code: Optional[ErrorCode] = ErrorCode.UNKNOWN_STATEMENT

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"SQL statement named {self.name} does not exist. "
                "Add it with StatementRegistry.register()"
            )


@dataclass
class InsufficientParameters(SqlConnectError):
    required: int = 0
    provided: int = 0
    template: str = ""
    code: Optional[ErrorCode] = ErrorCode.INSUFFICIENT_PARAMETERS

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Not enough parameters in SQL statement. Statement requires "
                f"{self.required} parameters. Only {self.provided} parameter(s) "
                f"provided: {self.template}"
            )


@dataclass
class ProcedureNotFound(SqlConnectError):
    name: str = ""
    server: str = ""
    database: str = ""
    cause: str = ""
    code: Optional[ErrorCode] = ErrorCode.PROCEDURE_NOT_FOUND

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Could not find stored procedure {self.name} on server "
                f"{self.server} database {self.database}"
            )
            if self.cause:
                self.message += f": {self.cause}"


@dataclass
class ParameterCountMismatch(SqlConnectError):
    name: str = ""
    declared: int = 0
    provided: int = 0
    code: Optional[ErrorCode] = ErrorCode.PARAMETER_COUNT_MISMATCH

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Stored procedure {self.name} declares {self.declared} "
                f"parameters but only {self.provided} were provided"
            )


@dataclass
class MissingConnectionString(SqlConnectError):
    kind: str = ""
    code: Optional[ErrorCode] = ErrorCode.MISSING_CONNECTION_STRING

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"No connection string configured for database kind {self.kind!r}"
            )


@dataclass
class UnknownDatabaseKind(SqlConnectError):
    kind: str = ""
    code: Optional[ErrorCode] = ErrorCode.UNKNOWN_DATABASE_KIND

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Unknown database kind: {self.kind!r}"


@dataclass
class UnknownOutputKind(SqlConnectError):
    output: str = ""
    code: Optional[ErrorCode] = ErrorCode.UNKNOWN_OUTPUT_KIND

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Unknown output kind: {self.output!r}"
