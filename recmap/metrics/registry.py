from prometheus_client import Counter, Histogram

CRUD_TOTAL = Counter(
    "recmap_crud_total",
    "Per-record CRUD statements executed by recmap",
    ["table", "op_type", "status"],
)

CRUD_LATENCY_SECONDS = Histogram(
    "recmap_crud_latency_seconds",
    "Latency of per-record CRUD statements, hooks included",
    ["table", "op_type"],
)

OPTIMISTIC_LOCK_CONFLICTS_TOTAL = Counter(
    "recmap_optimistic_lock_conflicts_total",
    "UPDATE/DELETE statements on versioned tables that matched no row",
    ["table", "op_type"],
)
