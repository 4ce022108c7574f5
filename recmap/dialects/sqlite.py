from __future__ import annotations

import datetime
from typing import Any, List

from ..mapping import ColumnMap, ColumnType, TableMap
from .base import Dialect

_TYPES = {
    ColumnType.BOOL: "integer",
    ColumnType.INT8: "integer",
    ColumnType.INT16: "integer",
    ColumnType.INT32: "integer",
    ColumnType.INT64: "integer",
    ColumnType.FLOAT32: "real",
    ColumnType.FLOAT64: "real",
    ColumnType.BYTES: "blob",
    ColumnType.TIMESTAMP: "datetime",
}


class SqliteDialect(Dialect):
    name = "sqlite"
    default_paramstyle = "qmark"

    def quote_field(self, name: str) -> str:
        return f'"{name}"'

    def to_sql_type(self, col: ColumnMap) -> str:
        if col.column_type is ColumnType.TEXT:
            if col.max_size:
                return f"varchar({col.max_size})"
            return "text"
        return _TYPES[col.column_type]

    def auto_incr_str(self) -> str:
        return "autoincrement"

    def column_constraints(self, col: ColumnMap) -> str:
        # varchar(n) is only advisory in SQLite.
        if col.max_size and col.column_type in (ColumnType.TEXT, ColumnType.BYTES):
            return f" check(length({self.quote_field(col.column_name)}) <= {col.max_size})"
        return ""

    def truncate_statements(self, table: TableMap, restart_identity: bool) -> List[str]:
        quoted = self.quote_field(table.table_name)
        statements = [f"delete from {quoted}"]
        # sqlite_sequence only tracks tables declared with AUTOINCREMENT.
        if restart_identity and table.auto_incr_key is not None:
            statements.append(f"delete from sqlite_sequence where name = '{table.table_name}'")
        return statements

    def to_db_value(self, col: ColumnMap, value: Any) -> Any:
        value = super().to_db_value(col, value)
        if isinstance(value, datetime.datetime):
            return value.isoformat(sep=" ")
        return value

    def from_db_value(self, col: ColumnMap, value: Any) -> Any:
        if col.column_type is ColumnType.TIMESTAMP and isinstance(value, str):
            return datetime.datetime.fromisoformat(value)
        return super().from_db_value(col, value)
