from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from ..errors import OptimisticLockError
from ..metrics.registry import (
    CRUD_LATENCY_SECONDS,
    CRUD_TOTAL,
    OPTIMISTIC_LOCK_CONFLICTS_TOTAL,
)


def observe_crud(table: str, op_type: str, status: str, latency_s: float) -> None:
    """Record one per-record CRUD statement."""
    CRUD_TOTAL.labels(table=table, op_type=op_type, status=status).inc()
    CRUD_LATENCY_SECONDS.labels(table=table, op_type=op_type).observe(latency_s)


def observe_lock_conflict(table: str, op_type: str) -> None:
    OPTIMISTIC_LOCK_CONFLICTS_TOTAL.labels(table=table, op_type=op_type).inc()


@contextmanager
def timed_crud(table: str, op_type: str) -> Iterator[None]:
    """
    Time the enclosed per-record operation and record its outcome.

    Status is ``success``, ``conflict`` for an OptimisticLockError, or
    ``error`` for anything else. Exceptions always propagate.
    """
    start_time = time.monotonic()
    status = "success"
    try:
        yield
    except OptimisticLockError:
        status = "conflict"
        observe_lock_conflict(table, op_type)
        raise
    except Exception:
        status = "error"
        raise
    finally:
        observe_crud(table, op_type, status, time.monotonic() - start_time)
