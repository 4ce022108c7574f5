from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Optional

from ..db.helpers import validate_identifier
from ..errors import ConfigurationError
from .types import ColumnType

if TYPE_CHECKING:
    from .table import TableMap

# Column-name value that excludes a field from the mapping entirely.
IGNORED = "-"


def column(name: str, **kwargs: Any) -> Any:
    """
    Declare a dataclass field with an explicit column name.

    ``column("-")`` excludes the field from the mapping. Remaining keyword
    arguments are passed through to :func:`dataclasses.field`.

    Example:
        @dataclass
        class Invoice:
            id: int = 0
            created: int = column("date_created", default=0)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata["db"] = name
    return dataclasses.field(metadata=metadata, **kwargs)


class ColumnMap:
    """
    Projection of one record field onto one table column.

    Instances are shared by every CRUD call against the owning table, so the
    setters below affect all later statements. Setters return ``self`` for
    chaining and raise ConfigurationError once the table is frozen.
    """

    def __init__(
        self,
        table: "TableMap",
        field_name: str,
        column_name: str,
        column_type: ColumnType,
        python_type: type,
        nullable: bool = False,
    ) -> None:
        self.table = table
        self.field_name = field_name
        self.column_name = column_name
        self.column_type = column_type
        self.python_type = python_type
        self.nullable = nullable
        self.is_pk = False
        self.is_auto_incr = False
        self.is_transient = False
        self.is_unique = False
        self.is_not_null = False
        self.max_size: Optional[int] = None
        self.sql_create: Optional[str] = None

    def __repr__(self) -> str:
        return f"ColumnMap({self.table.table_name}.{self.column_name} <- {self.field_name})"

    @property
    def is_version(self) -> bool:
        return self.table.version is self

    def _check_mutable(self) -> None:
        self.table._check_mutable()

    def rename(self, column_name: str) -> "ColumnMap":
        self._check_mutable()
        column_name = validate_identifier(column_name, "column")
        for other in self.table.columns:
            if other is not self and other.column_name.lower() == column_name.lower():
                raise ConfigurationError(
                    f"Column {column_name!r} already exists in table {self.table.table_name!r}"
                )
        self.column_name = column_name
        return self

    def set_transient(self, transient: bool) -> "ColumnMap":
        """Transient columns are never written, read or created."""
        self._check_mutable()
        if transient and (self.is_pk or self.is_version):
            raise ConfigurationError(
                f"Key or version column {self.column_name!r} cannot be transient"
            )
        self.is_transient = transient
        return self

    def set_unique(self, unique: bool) -> "ColumnMap":
        self._check_mutable()
        self.is_unique = unique
        return self

    def set_not_null(self, not_null: bool) -> "ColumnMap":
        self._check_mutable()
        self.is_not_null = not_null
        return self

    def set_max_size(self, size: int) -> "ColumnMap":
        self._check_mutable()
        if size < 1:
            raise ConfigurationError(f"max size must be positive, got {size}")
        self.max_size = size
        return self

    def set_sql_create(self, sql: str) -> "ColumnMap":
        """Replace the generated column definition in CREATE TABLE verbatim."""
        self._check_mutable()
        self.sql_create = sql
        return self
