from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

LookupOutcome = Literal["found", "not_found", "mismatch"]


class Metrics(ABC):
    @abstractmethod
    def observe_dispatch_duration_ms(self, *, kind: str, dt_ms: float) -> None: ...

    @abstractmethod
    def inc_dispatch(self, *, kind: str, ok: bool) -> None: ...

    @abstractmethod
    def inc_error(self, *, kind: str, error_code: str) -> None: ...

    @abstractmethod
    def inc_procedure_lookup(self, *, outcome: LookupOutcome) -> None: ...
