from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Sequence

from ..mapping import ColumnMap, ColumnType, TableMap
from .base import Dialect

if TYPE_CHECKING:
    from ..db.handle import SqlHandle

_TYPES = {
    ColumnType.BOOL: "boolean",
    ColumnType.INT8: "smallint",
    ColumnType.INT16: "smallint",
    ColumnType.INT32: "integer",
    ColumnType.INT64: "bigint",
    ColumnType.FLOAT32: "real",
    ColumnType.FLOAT64: "double precision",
    ColumnType.BYTES: "bytea",
    ColumnType.TIMESTAMP: "timestamp with time zone",
}


class PostgresDialect(Dialect):
    """
    PostgreSQL dialect.

    Generated keys come back through ``INSERT ... RETURNING`` since the
    server has no last-insert-id. The default paramstyle matches psycopg;
    pass ``paramstyle="numeric_dollar"`` for drivers using ``$1``.
    """

    name = "postgresql"
    default_paramstyle = "pyformat"

    def quote_field(self, name: str) -> str:
        return f'"{name.lower()}"'

    def to_sql_type(self, col: ColumnMap) -> str:
        if col.is_auto_incr:
            return "bigserial" if col.column_type is ColumnType.INT64 else "serial"
        if col.column_type is ColumnType.TEXT:
            if col.max_size:
                return f"varchar({col.max_size})"
            return "text"
        return _TYPES[col.column_type]

    def auto_incr_str(self) -> str:
        return ""

    def auto_incr_bind_value(self) -> str:
        return "default"

    def auto_incr_insert_suffix(self, col: ColumnMap) -> str:
        return f" returning {self.quote_field(col.column_name)}"

    def truncate_statements(self, table: TableMap, restart_identity: bool) -> List[str]:
        sql = f"truncate {self.quote_field(table.table_name)}"
        if restart_identity:
            sql += " restart identity"
        return [sql]

    def insert_auto_incr(self, handle: "SqlHandle", query: str, args: Sequence[Any]) -> Any:
        row = handle.fetch_one(query, args)
        return next(iter(row.values()))
