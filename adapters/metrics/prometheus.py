from __future__ import annotations

from prometheus_client import Counter, Histogram
from sqlconnect.prom import REGISTRY
from sqlconnect.errors.codes import ErrorCode
from sqlconnect.types import DatabaseKind

from adapters.metrics.base import LookupOutcome, Metrics

# -----------------------------------------------------------------------------
# Dispatch metrics
# -----------------------------------------------------------------------------
dispatch_duration_ms = Histogram(
    "sqlconnect_dispatch_duration_ms",
    "Duration (ms) of each dispatch call",
    ["kind"],
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 30000, 300000),
    registry=REGISTRY,
)

dispatch_calls_total = Counter(
    "sqlconnect_dispatch_calls_total",
    "Count of dispatch calls labeled by database kind and ok",
    ["kind", "ok"],
    registry=REGISTRY,
)

dispatch_errors_total = Counter(
    "sqlconnect_dispatch_errors_total",
    "Count of failed dispatch calls labeled by database kind and error_code",
    ["kind", "error_code"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Stored-procedure metadata lookups
# -----------------------------------------------------------------------------
procedure_lookups_total = Counter(
    "sqlconnect_procedure_lookups_total",
    "Stored-procedure parameter metadata lookups by outcome",
    ["outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics(Metrics):
    def observe_dispatch_duration_ms(self, *, kind: str, dt_ms: float) -> None:
        dispatch_duration_ms.labels(kind=kind).observe(float(dt_ms))

    def inc_dispatch(self, *, kind: str, ok: bool) -> None:
        dispatch_calls_total.labels(kind=kind, ok=("true" if ok else "false")).inc()

    def inc_error(self, *, kind: str, error_code: str) -> None:
        code = getattr(error_code, "value", error_code)
        dispatch_errors_total.labels(kind=kind, error_code=str(code)).inc()

    def inc_procedure_lookup(self, *, outcome: LookupOutcome) -> None:
        procedure_lookups_total.labels(outcome=outcome).inc()


# -----------------------------------------------------------------------------
# Label priming to keep scrapes stable
# -----------------------------------------------------------------------------
for kind in DatabaseKind:
    for ok in ("true", "false"):
        dispatch_calls_total.labels(kind=kind.value, ok=ok).inc(0)
    for code in ErrorCode:
        dispatch_errors_total.labels(kind=kind.value, error_code=code.value).inc(0)

for outcome in ("found", "not_found", "mismatch"):
    procedure_lookups_total.labels(outcome=outcome).inc(0)
