from __future__ import annotations

import pytest


def _selected(config: pytest.Config, marker_name: str) -> bool:
    """True if the `-m` expression names ``marker_name`` at all."""
    expr = getattr(config.option, "markexpr", "") or ""
    return marker_name in expr


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Thread-contention tests are slow and, on SQLite, mostly exercise lock
    retries; they only run when selected with `-m concurrency` (or `-m demo`).
    Probabilistic demo tests only run with `-m demo`.
    """
    run_demo = _selected(config, "demo")
    run_concurrency = run_demo or _selected(config, "concurrency")

    skip_concurrency = pytest.mark.skip(
        reason="Skipped: run with `pytest -m concurrency` to execute thread-contention tests."
    )
    skip_demo = pytest.mark.skip(reason="Skipped: run with `pytest -m demo` to execute demo tests.")

    for item in items:
        if item.get_closest_marker("demo") is not None and not run_demo:
            item.add_marker(skip_demo)
        elif item.get_closest_marker("concurrency") is not None and not run_concurrency:
            item.add_marker(skip_concurrency)
