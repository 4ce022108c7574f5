from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ..config import DbConfig
from ..dialects import Dialect, make_dialect
from ..errors import ConfigurationError
from ..mapping import ColumnMap, TableMap
from . import crud
from .handle import EngineHandle, ExecResult, SqlHandle, TracingHandle
from .tx import Transaction

logger = logging.getLogger(__name__)

TRACE_LOGGER_NAME = "recmap.trace"


class DbMap:
    """
    Registry of table mappings and entry point for every CRUD call.

    Lifecycle:
        1. Setup (single thread): add_table(), set_keys(), column options,
           create_tables().
        2. freeze(): mappings become read-only and the DbMap may be shared
           by concurrent callers.
        3. close(): disposes the engine's connection pool.

    Outside a Transaction every statement commits on its own, so a failure
    halfway through a multi-record call leaves the earlier records written.

    Calls take no cancellation argument. Timeouts come from the driver and
    engine configuration; with_execution_options() scopes SQLAlchemy
    execution options (driver timeouts, isolation level) to a group of calls.

    Usage:
        dbmap = DbMap(engine, SqliteDialect())
        dbmap.add_table_with_name(Invoice, "invoice_test").set_keys(True, "id")
        dbmap.create_tables()

        inv = Invoice(memo="first order")
        dbmap.insert(inv)           # inv.id is now set
        inv.memo = "second order"
        dbmap.update(inv)
        same = dbmap.get(Invoice, inv.id)
    """

    def __init__(self, engine: Engine, dialect: Dialect) -> None:
        self.engine = engine
        self.dialect = dialect
        self._tables: Dict[type, TableMap] = {}
        self._scan_maps: Dict[type, TableMap] = {}
        self._lock = threading.Lock()
        self._frozen = False
        self._trace_logger: Optional[logging.Logger] = None
        self._trace_prefix = ""

    @classmethod
    def from_config(cls, config: DbConfig) -> "DbMap":
        """Create the engine and dialect described by ``config``."""
        engine = create_engine(config.url, pool_pre_ping=config.pool_pre_ping)
        dbmap = cls(engine, make_dialect(config))
        if config.trace:
            dbmap.trace_on(config.trace_prefix)
        return dbmap

    def with_execution_options(self, **options: Any) -> "DbMap":
        """
        Return a DbMap sharing this one's mappings, dialect, tracing and pool,
        whose statements run with ``options`` applied
        (``Engine.execution_options``).

        Register tables on the original DbMap; the derived one is frozen.
        """
        derived = DbMap(self.engine.execution_options(**options), self.dialect)
        derived._tables = self._tables
        derived._scan_maps = self._scan_maps
        derived._lock = self._lock
        derived._frozen = True
        derived._trace_logger = self._trace_logger
        derived._trace_prefix = self._trace_prefix
        return derived

    def close(self) -> None:
        """Dispose the engine. The DbMap must not be used afterwards."""
        self.engine.dispose()

    # -- registration --------------------------------------------------

    def add_table(self, record_type: type) -> TableMap:
        """Register ``record_type`` under its lower-cased class name."""
        return self.add_table_with_name(record_type, record_type.__name__.lower())

    def add_table_with_name(self, record_type: type, name: str) -> TableMap:
        """
        Register ``record_type`` as table ``name``.

        Registering a type again returns the existing TableMap unchanged.
        """
        with self._lock:
            table = self._tables.get(record_type)
            if table is not None:
                return table
            if self._frozen:
                raise ConfigurationError("DbMap is frozen; tables can no longer be added")
            table = TableMap(record_type, name)
            self._tables[record_type] = table
            logger.debug("Registered %s as table %s", record_type.__name__, name)
            return table

    def table_for(self, record_type: type) -> TableMap:
        """
        Return the mapping of a registered type.

        Raises:
            ConfigurationError: If the type was never registered
        """
        table = self._tables.get(record_type)
        if table is None:
            raise ConfigurationError(f"No table registered for type {record_type.__name__}")
        return table

    def scan_map_for(self, record_type: type) -> TableMap:
        """
        Mapping used to bind query rows into ``record_type``.

        Registered types use their table mapping; any other class gets a
        private, unregistered mapping derived once and cached.
        """
        table = self._tables.get(record_type)
        if table is not None:
            return table
        with self._lock:
            table = self._scan_maps.get(record_type)
            if table is None:
                table = TableMap(record_type, record_type.__name__.lower())
                table.freeze()
                self._scan_maps[record_type] = table
            return table

    @property
    def tables(self) -> List[TableMap]:
        return list(self._tables.values())

    def freeze(self) -> None:
        """End the setup phase: mappings become read-only from here on."""
        with self._lock:
            self._frozen = True
            for table in self._tables.values():
                table.freeze()

    # -- schema --------------------------------------------------------

    def column_sql(self, col: ColumnMap) -> str:
        """Column definition used in CREATE TABLE."""
        if col.sql_create:
            return col.sql_create
        d = self.dialect
        sql = f"{d.quote_field(col.column_name)} {d.to_sql_type(col)}"
        if col.is_pk or col.is_not_null:
            sql += " not null"
        single_pk = col.is_pk and len(col.table.keys) == 1
        if single_pk:
            sql += " primary key"
        # a single primary key is already unique; SQLite rejects "unique autoincrement"
        if col.is_unique and not single_pk:
            sql += " unique"
        if col.is_auto_incr:
            auto = d.auto_incr_str()
            if auto:
                sql += f" {auto}"
        return sql + d.column_constraints(col)

    def create_table_sql(self, table: TableMap, if_not_exists: bool = False) -> str:
        d = self.dialect
        parts = [self.column_sql(col) for col in table.persisted_columns]
        if len(table.keys) > 1:
            keys = ", ".join(d.quote_field(c.column_name) for c in table.keys)
            parts.append(f"primary key ({keys})")
        create = "create table if not exists" if if_not_exists else "create table"
        return f"{create} {d.quote_field(table.table_name)} ({', '.join(parts)}){d.create_table_suffix()};"

    def create_tables(self) -> None:
        self._create_tables(if_not_exists=False)

    def create_tables_if_not_exists(self) -> None:
        self._create_tables(if_not_exists=True)

    def _create_tables(self, if_not_exists: bool) -> None:
        for table in self._tables.values():
            self.exec(self.create_table_sql(table, if_not_exists))
            logger.info("Created table %s", table.table_name)

    def drop_tables(self) -> None:
        for table in self._tables.values():
            self.exec(f"drop table if exists {self.dialect.quote_field(table.table_name)};")
            logger.info("Dropped table %s", table.table_name)

    def truncate_tables(self) -> None:
        self._truncate_tables(restart_identity=False)

    def truncate_tables_identity_restart(self) -> None:
        """Delete every row and reset auto-increment counters."""
        self._truncate_tables(restart_identity=True)

    def _truncate_tables(self, restart_identity: bool) -> None:
        for table in self._tables.values():
            for sql in self.dialect.truncate_statements(table, restart_identity):
                self.exec(sql)

    # -- execution -----------------------------------------------------

    def handle(self) -> SqlHandle:
        return TracingHandle(self, EngineHandle(self.engine))

    def begin(self) -> Transaction:
        """Open a connection and start a transaction on it."""
        self.trace("begin;")
        conn = self.engine.connect()
        try:
            return Transaction(self, conn)
        except Exception:
            conn.close()
            raise

    def insert(self, *records: Any) -> None:
        """
        Insert each record.

        Generated keys and the initial version (1) are written back into the
        records. pre_insert/post_insert hooks run around each statement.
        """
        crud.insert(self, self, *records)

    def update(self, *records: Any) -> int:
        """
        Update each record by primary key and return the affected row count.

        Raises:
            OptimisticLockError: A versioned record matched no row; the
                error's rows_affected is -1 for the whole call
        """
        return crud.update(self, self, *records)

    def delete(self, *records: Any) -> int:
        """
        Delete each record by primary key and return the affected row count.

        Raises:
            OptimisticLockError: A versioned record matched no row
        """
        return crud.delete(self, self, *records)

    def get(self, dest: Any, *keys: Any) -> Any:
        """
        Fetch a row by primary key.

        ``dest`` is a registered class (a new record is returned) or a
        record instance (filled in place and returned).

        Raises:
            NoRowsError: If no row has these keys
        """
        return crud.get(self, self, dest, *keys)

    def select(self, dest_type: type, query: str, *args: Any) -> List[Any]:
        """Run a raw query and bind every row into a new ``dest_type`` record."""
        return crud.hooked_select(self, self, dest_type, query, *args)

    def select_one(self, dest: Any, query: str, *args: Any) -> Any:
        """
        Run a raw query and bind its first row into ``dest``.

        Raises:
            NoRowsError: If the query returned nothing
        """
        return crud.hooked_get(self, self, dest, query, *args)

    def exec(self, query: str, *args: Any) -> ExecResult:
        """Run a raw statement in its own transaction."""
        return self.handle().execute(query, args)

    # -- tracing -------------------------------------------------------

    def trace_on(self, prefix: str = "", logger: Optional[logging.Logger] = None) -> None:
        """Log every statement and its arguments at INFO level."""
        self._trace_prefix = prefix
        self._trace_logger = logger or logging.getLogger(TRACE_LOGGER_NAME)

    def trace_off(self) -> None:
        self._trace_logger = None
        self._trace_prefix = ""

    def trace(self, query: str, *args: Any) -> None:
        trace_logger = self._trace_logger
        if trace_logger is not None:
            trace_logger.info("%s%s %r", self._trace_prefix, query, list(args))
