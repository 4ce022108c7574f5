from __future__ import annotations

import os
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable

import pytest
from sqlalchemy.exc import OperationalError


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def default_threads() -> int:
    return env_int("RECMAP_CONCURRENCY_THREADS", 5)


def default_ops_per_thread() -> int:
    return env_int("RECMAP_CONCURRENCY_OPS", 50)


def is_retryable_db_error(exc: Exception) -> bool:
    """
    Check if a driver error is worth retrying.

    - MySQL 1205: Lock wait timeout exceeded
    - MySQL 1213: Deadlock found when trying to get lock
    - SQLite: database is locked
    """
    if not isinstance(exc, OperationalError):
        return False

    if hasattr(exc, "orig") and hasattr(exc.orig, "args") and len(exc.orig.args) > 0:
        if exc.orig.args[0] in (1205, 1213):
            return True

    error_msg = str(exc).lower()
    return "lock wait timeout" in error_msg or "deadlock" in error_msg or "database is locked" in error_msg


@dataclass(frozen=True)
class WorkerError:
    worker_id: int
    exc_type: str
    message: str


def run_threads(
    *,
    threads: int,
    worker_fn: Callable[..., None],
    worker_kwargs: dict[str, Any] | None = None,
) -> None:
    """Start ``threads`` workers behind a barrier and fail the test if any of them raised."""
    worker_kwargs = worker_kwargs or {}
    start_barrier = threading.Barrier(threads)
    err_queue: "queue.Queue[WorkerError]" = queue.Queue()

    def entrypoint(worker_id: int) -> None:
        try:
            start_barrier.wait()
            worker_fn(worker_id=worker_id, **worker_kwargs)
        except BaseException as exc:  # noqa: BLE001 - must propagate any failure
            err_queue.put(
                WorkerError(worker_id=worker_id, exc_type=type(exc).__name__, message=str(exc))
            )

    workers = [threading.Thread(target=entrypoint, args=(wid,)) for wid in range(threads)]
    for t in workers:
        t.start()
    for t in workers:
        t.join(timeout=120)

    errors: list[WorkerError] = []
    while True:
        try:
            errors.append(err_queue.get_nowait())
        except queue.Empty:
            break

    hung = [t for t in workers if t.is_alive()]
    if errors or hung:
        details = [f"worker {e.worker_id}: {e.exc_type}: {e.message}" for e in errors]
        details.extend(f"thread {t.name} did not finish" for t in hung)
        pytest.fail("Worker failures:\n" + "\n".join(details), pytrace=False)


def retry_until(
    *,
    attempts: int,
    fn: Callable[[], bool],
    on_fail_message: str,
) -> None:
    for _ in range(attempts):
        if fn():
            return
    pytest.fail(on_fail_message, pytrace=False)
