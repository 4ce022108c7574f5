from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence

from sqlalchemy.engine import Connection, Engine

from ..errors import NoRowsError

if TYPE_CHECKING:
    from .dbmap import DbMap


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a non-SELECT statement."""

    rows_affected: int
    last_insert_id: Optional[int] = None


class SqlHandle(Protocol):
    """
    Minimal executor capability shared by plain connections and transactions.

    Statements use the active dialect's positional placeholders and are sent
    to the driver as-is (``exec_driver_sql``).
    """

    def execute(self, query: str, args: Sequence[Any] = ()) -> ExecResult:
        """Execute a non-SELECT statement."""
        ...

    def fetch_one(self, query: str, args: Sequence[Any] = ()) -> dict[str, Any]:
        """Return the first row; raise NoRowsError when there is none."""
        ...

    def fetch_all(self, query: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Return every row."""
        ...


def _execute(conn: Connection, query: str, args: Sequence[Any]) -> ExecResult:
    result = conn.exec_driver_sql(query, tuple(args))
    try:
        if result.rowcount is None:
            raise RuntimeError(
                "execute() received None rowcount for statement. "
                "This may indicate a DDL statement or unsupported operation type."
            )
        return ExecResult(rows_affected=int(result.rowcount), last_insert_id=result.lastrowid)
    finally:
        result.close()


def _fetch_one(conn: Connection, query: str, args: Sequence[Any]) -> dict[str, Any]:
    result = conn.exec_driver_sql(query, tuple(args))
    try:
        # Extra rows are ignored: callers bind only the first one.
        row = result.mappings().first()
    finally:
        result.close()
    if row is None:
        raise NoRowsError("query returned no rows")
    return dict(row)


def _fetch_all(conn: Connection, query: str, args: Sequence[Any]) -> list[dict[str, Any]]:
    result = conn.exec_driver_sql(query, tuple(args))
    try:
        return [dict(row) for row in result.mappings()]
    finally:
        result.close()


class EngineHandle:
    """
    Handle over a SQLAlchemy Engine.

    Every call checks out a connection and runs in its own transaction, which
    commits when the call returns (auto-commit per statement).
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def execute(self, query: str, args: Sequence[Any] = ()) -> ExecResult:
        with self.engine.begin() as conn:
            return _execute(conn, query, args)

    def fetch_one(self, query: str, args: Sequence[Any] = ()) -> dict[str, Any]:
        with self.engine.begin() as conn:
            return _fetch_one(conn, query, args)

    def fetch_all(self, query: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self.engine.begin() as conn:
            return _fetch_all(conn, query, args)


class ConnectionHandle:
    """
    Handle over the connection of an open transaction.

    Statements are deferred until the owning Transaction commits.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def execute(self, query: str, args: Sequence[Any] = ()) -> ExecResult:
        return _execute(self._conn, query, args)

    def fetch_one(self, query: str, args: Sequence[Any] = ()) -> dict[str, Any]:
        return _fetch_one(self._conn, query, args)

    def fetch_all(self, query: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return _fetch_all(self._conn, query, args)


class TracingHandle:
    """Handle decorator that traces every statement through its DbMap before forwarding."""

    def __init__(self, dbmap: "DbMap", inner: SqlHandle) -> None:
        self._dbmap = dbmap
        self._inner = inner

    def execute(self, query: str, args: Sequence[Any] = ()) -> ExecResult:
        self._dbmap.trace(query, *args)
        return self._inner.execute(query, args)

    def fetch_one(self, query: str, args: Sequence[Any] = ()) -> dict[str, Any]:
        self._dbmap.trace(query, *args)
        return self._inner.fetch_one(query, args)

    def fetch_all(self, query: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        self._dbmap.trace(query, *args)
        return self._inner.fetch_all(query, args)
