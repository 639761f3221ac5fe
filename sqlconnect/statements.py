"""
Named statement registry and `$s` / `$d` / `$p` template expansion.

Parameters are spliced into the SQL text. Stripping single quotes from them
is a blunt, best-effort guard against the most naive injection and NOT a
security boundary: only driver-bound parameters are safe.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml  # type: ignore[import-untyped]

from sqlconnect.errors.exceptions import InsufficientParameters, UnknownStatement
from sqlconnect.types import DatabaseKind, StatementTemplate

log = logging.getLogger(__name__)

SERVER_MARKER = "$s"
DATABASE_MARKER = "$d"
PARAM_MARKER = "$p"


def strip_quotes(parameters: Optional[Sequence[Optional[str]]]) -> List[Optional[str]]:
    """Remove every single quote from every parameter (None stays None)."""
    return [p.replace("'", "") if p is not None else None for p in (parameters or [])]


def splice(text: str, parameters: Sequence[Optional[str]], *, template: str = "") -> str:
    """Replace each `$p` marker in order. Extra parameters are ignored."""
    segments = text.split(PARAM_MARKER)
    required = len(segments) - 1
    if required == 0:
        return text
    if len(parameters) < required:
        raise InsufficientParameters(
            required=required, provided=len(parameters), template=template or text
        )
    out = [segments[0]]
    for param, segment in zip(parameters, segments[1:]):
        out.append("" if param is None else str(param))
        out.append(segment)
    return "".join(out)


class StatementRegistry:
    """
    Process-wide store of named SQL templates.

    Registration is an upsert: the last registration under a name wins.
    """

    def __init__(self, server_name: str = "", database_name: str = "") -> None:
        self.server_name = server_name
        self.database_name = database_name
        self._templates: Dict[str, StatementTemplate] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def register(
        self,
        name: str,
        text: str,
        kind: DatabaseKind | str = DatabaseKind.SERVER,
        connection_string: Optional[str] = None,
    ) -> StatementTemplate:
        tpl = StatementTemplate(
            name=name,
            text=text,
            kind=DatabaseKind(kind),
            connection_string=connection_string or None,
        )
        with self._lock:
            replaced = name in self._templates
            self._templates[name] = tpl
        log.debug(
            "Registered statement",
            extra={"statement": name, "kind": tpl.kind.value, "replaced": replaced},
        )
        return tpl

    def get(self, name: str) -> StatementTemplate:
        try:
            return self._templates[name]
        except KeyError:
            raise UnknownStatement(name=name) from None

    def expand(
        self,
        name: str,
        parameters: Optional[Sequence[Optional[str]]] = None,
        *,
        server_name: Optional[str] = None,
        database_name: Optional[str] = None,
    ) -> str:
        """
        Build the concrete statement for ``name``.

        ``server_name``/``database_name`` override the registry's own names
        for this call.

        Raises UnknownStatement or InsufficientParameters; never returns a
        partially expanded statement.
        """
        params = strip_quotes(parameters)
        tpl = self.get(name)
        server = self.server_name if server_name is None else server_name
        database = self.database_name if database_name is None else database_name
        text = tpl.text.replace(SERVER_MARKER, server)
        text = text.replace(DATABASE_MARKER, database)
        return splice(text, params, template=tpl.text)

    def load_yaml(self, path: str | Path) -> int:
        """
        Register every statement from a YAML mapping:

            customer_by_id:
              sql: SELECT * FROM $d.dbo.customers WHERE id = $p
              kind: server
              connection_string: null

        Returns the number of statements registered.
        """
        with open(path, "r", encoding="utf-8") as fh:
            cfg: Dict[str, Any] = yaml.safe_load(fh) or {}

        entries = cfg.get("statements", cfg)
        if not isinstance(entries, dict):
            raise ValueError(f"Statements config {path} must be a mapping")

        count = 0
        for name, entry in entries.items():
            if isinstance(entry, str):
                entry = {"sql": entry}
            sql = (entry or {}).get("sql")
            if not isinstance(sql, str) or not sql.strip():
                raise ValueError(f"Statement {name!r} must have a non-empty 'sql'")
            self.register(
                str(name),
                sql,
                entry.get("kind") or DatabaseKind.SERVER,
                entry.get("connection_string"),
            )
            count += 1
        log.info("Loaded %d statements from %s", count, path)
        return count
