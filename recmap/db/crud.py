"""
CRUD engine shared by DbMap and Transaction.

Every function takes the registry (for mappings and the dialect) and the
executor the caller used (a DbMap or a Transaction). The executor supplies
the handle statements run on and is what lifecycle hooks receive, so a hook
called inside a transaction runs its own statements in that transaction.

Records are processed one at a time and the first failure aborts the call.
Nothing is rolled back here: wrap multi-record calls in a Transaction when
they must be atomic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Sequence, Tuple

from ..errors import ConfigurationError, OptimisticLockError
from ..hooks import (
    PostDeleter,
    PostGetter,
    PostInserter,
    PostUpdater,
    PreDeleter,
    PreInserter,
    PreUpdater,
)
from ..mapping import TableMap
from .metrics import timed_crud
from .models import BoundStatement, OperationType

if TYPE_CHECKING:
    from ..dialects.base import Dialect
    from .dbmap import DbMap
    from .handle import SqlHandle

logger = logging.getLogger(__name__)


def _table_for_record(dbmap: "DbMap", record: Any) -> TableMap:
    if isinstance(record, type):
        raise ConfigurationError(
            f"Expected a record instance, got the class {record.__name__}"
        )
    return dbmap.table_for(type(record))


def _resolve_dest(dbmap: "DbMap", dest: Any, registered: bool) -> Tuple[TableMap, Any]:
    """
    Turn a destination into ``(mapping, record)``.

    A class yields a fresh record; an instance is bound in place.
    """
    record_type = dest if isinstance(dest, type) else type(dest)
    if dest is None or record_type.__module__ == "builtins":
        raise ConfigurationError(f"Destination {dest!r} cannot receive a row")
    table = dbmap.table_for(record_type) if registered else dbmap.scan_map_for(record_type)
    record = table.new_record() if isinstance(dest, type) else dest
    return table, record


def _bind_row(table: TableMap, dialect: "Dialect", record: Any, row: dict[str, Any]) -> None:
    columns = table.columns_by_name()
    for name, value in row.items():
        col = columns.get(name.lower())
        if col is None:
            raise ConfigurationError(
                f"Missing destination name {name!r} in {table.record_type.__name__}"
            )
        setattr(record, col.field_name, dialect.from_db_value(col, value))


def _require_keys(table: TableMap) -> None:
    if not table.keys:
        raise ConfigurationError(f"Table {table.table_name!r} has no keys; call set_keys()")


def _key_clause(table: TableMap, dialect: "Dialect", args: List[Any], values: Sequence[Any]) -> str:
    _require_keys(table)
    clauses = []
    for col, value in zip(table.keys, values):
        clauses.append(f"{dialect.quote_field(col.column_name)} = {dialect.bind_var(len(args))}")
        args.append(dialect.to_db_value(col, value))
    return " and ".join(clauses)


def _existing_version(table: TableMap, record: Any) -> int:
    return int(getattr(record, table.version.field_name) or 0)


def bind_insert(table: TableMap, dialect: "Dialect", record: Any) -> BoundStatement:
    for col in table.keys:
        if col.is_auto_incr and not col.column_type.is_integer:
            raise ConfigurationError(
                f"Cannot auto-increment non-integer key {table.table_name}.{col.column_name}"
            )

    names: List[str] = []
    values: List[str] = []
    args: List[Any] = []
    for col in table.persisted_columns:
        names.append(dialect.quote_field(col.column_name))
        if col.is_auto_incr:
            values.append(dialect.auto_incr_bind_value())
            continue
        values.append(dialect.bind_var(len(args)))
        if col.is_version:
            args.append(1)
        else:
            args.append(dialect.to_db_value(col, getattr(record, col.field_name)))

    query = (
        f"insert into {dialect.quote_field(table.table_name)} "
        f"({', '.join(names)}) values ({', '.join(values)})"
    )
    auto_key = table.auto_incr_key
    if auto_key is not None:
        query += dialect.auto_incr_insert_suffix(auto_key)
    return BoundStatement(query=query, args=args)


def bind_update(table: TableMap, dialect: "Dialect", record: Any) -> BoundStatement | None:
    """Build the UPDATE for ``record``; None when there is nothing to set."""
    existing = _existing_version(table, record) if table.version is not None else None
    sets: List[str] = []
    args: List[Any] = []
    for col in table.persisted_columns:
        if col.is_pk:
            continue
        sets.append(f"{dialect.quote_field(col.column_name)} = {dialect.bind_var(len(args))}")
        if col.is_version:
            args.append(existing + 1)
        else:
            args.append(dialect.to_db_value(col, getattr(record, col.field_name)))
    if not sets:
        return None

    where = _where_keys_and_version(table, dialect, record, args, existing)
    query = f"update {dialect.quote_field(table.table_name)} set {', '.join(sets)} where {where}"
    return BoundStatement(query=query, args=args, existing_version=existing)


def bind_delete(table: TableMap, dialect: "Dialect", record: Any) -> BoundStatement:
    existing = _existing_version(table, record) if table.version is not None else None
    args: List[Any] = []
    where = _where_keys_and_version(table, dialect, record, args, existing)
    query = f"delete from {dialect.quote_field(table.table_name)} where {where}"
    return BoundStatement(query=query, args=args, existing_version=existing)


def bind_get(table: TableMap, dialect: "Dialect", keys: Sequence[Any]) -> BoundStatement:
    _require_keys(table)
    if len(keys) != len(table.keys):
        raise ConfigurationError(
            f"Table {table.table_name!r} has {len(table.keys)} key column(s), got {len(keys)} value(s)"
        )
    names = ", ".join(dialect.quote_field(c.column_name) for c in table.persisted_columns)
    args: List[Any] = []
    where = _key_clause(table, dialect, args, keys)
    query = f"select {names} from {dialect.quote_field(table.table_name)} where {where}"
    return BoundStatement(query=query, args=args)


def _where_keys_and_version(
    table: TableMap,
    dialect: "Dialect",
    record: Any,
    args: List[Any],
    existing: int | None,
) -> str:
    values = [getattr(record, col.field_name) for col in table.keys]
    where = _key_clause(table, dialect, args, values)
    if table.version is not None:
        where += f" and {dialect.quote_field(table.version.column_name)} = {dialect.bind_var(len(args))}"
        args.append(existing)
    return where


def _lock_error(table: TableMap, op_type: OperationType, record: Any, existing: int) -> OptimisticLockError:
    keys = [getattr(record, c.field_name) for c in table.keys]
    logger.info(
        "Optimistic lock conflict on %s %s keys=%s local_version=%s",
        op_type.value,
        table.table_name,
        keys,
        existing,
    )
    return OptimisticLockError(
        f"{op_type.value} on {table.table_name} keys={keys} matched no row at version {existing}"
    )


def insert(dbmap: "DbMap", executor: Any, *records: Any) -> None:
    handle: "SqlHandle" = executor.handle()
    dialect = dbmap.dialect
    for record in records:
        table = _table_for_record(dbmap, record)
        with timed_crud(table.table_name, OperationType.INSERT.value):
            if isinstance(record, PreInserter):
                record.pre_insert(executor)

            stmt = bind_insert(table, dialect, record)
            auto_key = table.auto_incr_key
            if auto_key is not None:
                new_id = dialect.insert_auto_incr(handle, stmt.query, stmt.args)
                setattr(record, auto_key.field_name, int(new_id))
            else:
                handle.execute(stmt.query, stmt.args)

            if table.version is not None:
                setattr(record, table.version.field_name, 1)

            if isinstance(record, PostInserter):
                record.post_insert(executor)


def update(dbmap: "DbMap", executor: Any, *records: Any) -> int:
    handle: "SqlHandle" = executor.handle()
    dialect = dbmap.dialect
    count = 0
    for record in records:
        table = _table_for_record(dbmap, record)
        with timed_crud(table.table_name, OperationType.UPDATE.value):
            if isinstance(record, PreUpdater):
                record.pre_update(executor)

            stmt = bind_update(table, dialect, record)
            rows = 0
            if stmt is not None:
                rows = handle.execute(stmt.query, stmt.args).rows_affected
                if table.version is not None:
                    if rows == 0:
                        raise _lock_error(table, OperationType.UPDATE, record, stmt.existing_version)
                    if rows == 1:
                        setattr(record, table.version.field_name, stmt.existing_version + 1)

            if isinstance(record, PostUpdater):
                record.post_update(executor)
            count += rows
    return count


def delete(dbmap: "DbMap", executor: Any, *records: Any) -> int:
    handle: "SqlHandle" = executor.handle()
    dialect = dbmap.dialect
    count = 0
    for record in records:
        table = _table_for_record(dbmap, record)
        with timed_crud(table.table_name, OperationType.DELETE.value):
            if isinstance(record, PreDeleter):
                record.pre_delete(executor)

            stmt = bind_delete(table, dialect, record)
            rows = handle.execute(stmt.query, stmt.args).rows_affected
            if rows == 0 and table.version is not None:
                raise _lock_error(table, OperationType.DELETE, record, stmt.existing_version)

            if isinstance(record, PostDeleter):
                record.post_delete(executor)
            count += rows
    return count


def get(dbmap: "DbMap", executor: Any, dest: Any, *keys: Any) -> Any:
    table, record = _resolve_dest(dbmap, dest, registered=True)
    stmt = bind_get(table, dbmap.dialect, keys)
    with timed_crud(table.table_name, OperationType.GET.value):
        row = executor.handle().fetch_one(stmt.query, stmt.args)
        _bind_row(table, dbmap.dialect, record, row)
        if isinstance(record, PostGetter):
            record.post_get(executor)
    return record


def hooked_select(dbmap: "DbMap", executor: Any, dest_type: Any, query: str, *args: Any) -> List[Any]:
    if not isinstance(dest_type, type):
        raise ConfigurationError(f"select() needs a record class, got {dest_type!r}")
    table, _ = _resolve_dest(dbmap, dest_type, registered=False)
    rows = executor.handle().fetch_all(query, args)
    records = []
    for row in rows:
        record = table.new_record()
        _bind_row(table, dbmap.dialect, record, row)
        records.append(record)
    for record in records:
        if isinstance(record, PostGetter):
            record.post_get(executor)
    return records


def hooked_get(dbmap: "DbMap", executor: Any, dest: Any, query: str, *args: Any) -> Any:
    table, record = _resolve_dest(dbmap, dest, registered=False)
    row = executor.handle().fetch_one(query, args)
    _bind_row(table, dbmap.dialect, record, row)
    if isinstance(record, PostGetter):
        record.post_get(executor)
    return record
