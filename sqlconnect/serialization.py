"""Wire format for remote callers: {"columns": [...], "rows": [[...], ...]}."""

from __future__ import annotations

import json
from typing import Optional

from sqlconnect.types import ResultGrid, RowSet


def to_json(payload: RowSet | ResultGrid | None) -> Optional[str]:
    if payload is None:
        return None
    if isinstance(payload, ResultGrid):
        payload = payload.to_rowset()
    return json.dumps(payload.as_dict(), ensure_ascii=False, separators=(",", ":"))
