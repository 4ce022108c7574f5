from __future__ import annotations

import datetime
from typing import Any, Optional

from ..mapping import ColumnMap, ColumnType
from .base import Dialect

_TYPES = {
    ColumnType.BOOL: "boolean",
    ColumnType.INT8: "tinyint",
    ColumnType.INT16: "smallint",
    ColumnType.INT32: "int",
    ColumnType.INT64: "bigint",
    ColumnType.FLOAT32: "float",
    ColumnType.FLOAT64: "double",
    ColumnType.BYTES: "mediumblob",
    ColumnType.TIMESTAMP: "datetime(6)",
}

_DEFAULT_VARCHAR_SIZE = 255


class MySQLDialect(Dialect):
    """
    MySQL dialect.

    ``engine`` and ``encoding`` end up in every CREATE TABLE. MySQL has no
    time zones on DATETIME, so timestamps are stored as naive UTC and
    read back as aware UTC values.
    """

    name = "mysql"
    default_paramstyle = "format"

    def __init__(
        self,
        engine: str = "InnoDB",
        encoding: str = "UTF8",
        paramstyle: Optional[str] = None,
    ) -> None:
        super().__init__(paramstyle)
        self.engine = engine
        self.encoding = encoding

    def __repr__(self) -> str:
        return f"MySQLDialect(engine={self.engine!r}, encoding={self.encoding!r})"

    def quote_field(self, name: str) -> str:
        return f"`{name}`"

    def to_sql_type(self, col: ColumnMap) -> str:
        if col.column_type is ColumnType.TEXT:
            return f"varchar({col.max_size or _DEFAULT_VARCHAR_SIZE})"
        return _TYPES[col.column_type]

    def auto_incr_str(self) -> str:
        return "auto_increment"

    def create_table_suffix(self) -> str:
        return f" engine={self.engine} charset={self.encoding}"

    def to_db_value(self, col: ColumnMap, value: Any) -> Any:
        value = super().to_db_value(col, value)
        if isinstance(value, datetime.datetime) and value.tzinfo is not None:
            return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        return value

    def from_db_value(self, col: ColumnMap, value: Any) -> Any:
        if isinstance(value, datetime.datetime) and value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return super().from_db_value(col, value)
