from __future__ import annotations

from adapters.metrics.base import LookupOutcome, Metrics


class NoOpMetrics(Metrics):
    def observe_dispatch_duration_ms(self, *, kind: str, dt_ms: float) -> None:
        return

    def inc_dispatch(self, *, kind: str, ok: bool) -> None:
        return

    def inc_error(self, *, kind: str, error_code: str) -> None:
        return

    def inc_procedure_lookup(self, *, outcome: LookupOutcome) -> None:
        return
