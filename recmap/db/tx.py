from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from sqlalchemy.engine import Connection
from sqlalchemy.exc import ResourceClosedError

from . import crud
from .handle import ConnectionHandle, ExecResult, SqlHandle, TracingHandle

if TYPE_CHECKING:
    from .dbmap import DbMap


class Transaction:
    """
    Database transaction with explicit commit/rollback methods.

    Insert/Update/Delete/Get/Select/Exec have the same behavior as on
    DbMap but run on the transaction's connection, so nothing is visible to
    other connections until commit().

    The transaction begins on construction and must be terminated by exactly
    one call to commit() or rollback(). Either one closes the connection;
    any later call raises ResourceClosedError. Nested transactions are not
    supported, and a Transaction must not be shared between threads.

    Usage:
        tx = dbmap.begin()
        try:
            tx.insert(inv1, inv2)
            tx.commit()
        except Exception:
            tx.rollback()
            raise

    or, committing on success and rolling back on exception:

        with dbmap.begin() as tx:
            tx.insert(inv1, inv2)
    """

    def __init__(self, dbmap: "DbMap", conn: Connection) -> None:
        """
        Initialize and begin a new transaction.

        Args:
            dbmap: The registry providing mappings, dialect and tracing
            conn: A freshly checked-out connection, owned from now on
        """
        self.dbmap = dbmap
        self._conn: Connection | None = conn
        self._tx = conn.begin()
        self._closed = False

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            if exc_type:
                self.rollback()
            else:
                self.commit()

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        """Get the active connection, raising if closed."""
        if self._closed or self._conn is None:
            raise ResourceClosedError("This transaction is closed")
        return self._conn

    def handle(self) -> SqlHandle:
        return TracingHandle(self.dbmap, ConnectionHandle(self._connection()))

    def insert(self, *records: Any) -> None:
        """Same as DbMap.insert(), inside the transaction."""
        crud.insert(self.dbmap, self, *records)

    def update(self, *records: Any) -> int:
        """Same as DbMap.update(), inside the transaction."""
        return crud.update(self.dbmap, self, *records)

    def delete(self, *records: Any) -> int:
        """Same as DbMap.delete(), inside the transaction."""
        return crud.delete(self.dbmap, self, *records)

    def get(self, dest: Any, *keys: Any) -> Any:
        """Same as DbMap.get(), inside the transaction."""
        return crud.get(self.dbmap, self, dest, *keys)

    def select(self, dest_type: type, query: str, *args: Any) -> List[Any]:
        """Same as DbMap.select(), inside the transaction."""
        return crud.hooked_select(self.dbmap, self, dest_type, query, *args)

    def select_one(self, dest: Any, query: str, *args: Any) -> Any:
        """Same as DbMap.select_one(), inside the transaction."""
        return crud.hooked_get(self.dbmap, self, dest, query, *args)

    def exec(self, query: str, *args: Any) -> ExecResult:
        """Run a raw statement inside the transaction."""
        return self.handle().execute(query, args)

    def commit(self) -> None:
        """
        Commit the transaction and close the connection.

        Raises:
            ResourceClosedError: If the transaction is already closed
        """
        self._connection()
        self.dbmap.trace("commit;")
        try:
            self._tx.commit()
        finally:
            self._close()

    def rollback(self) -> None:
        """
        Roll back the transaction and close the connection.

        Raises:
            ResourceClosedError: If the transaction is already closed
        """
        self._connection()
        self.dbmap.trace("rollback;")
        try:
            self._tx.rollback()
        finally:
            self._close()

    def _close(self) -> None:
        self._closed = True
        if self._conn is not None:
            self._conn.close()
        self._conn = None
