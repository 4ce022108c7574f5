from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from ..errors import ConfigurationError
from ..mapping.types import ColumnType

if TYPE_CHECKING:
    from ..db.handle import SqlHandle
    from ..mapping import ColumnMap, TableMap


class Dialect(ABC):
    """
    Abstract base for SQL dialect strategies.

    A dialect is a stateless value: every SQL fragment the CRUD engine emits
    (placeholders, quoted identifiers, type names, auto-increment handling)
    comes from here, so the engine itself never branches on the database.
    """

    name: str = ""
    default_paramstyle: str = "qmark"

    def __init__(self, paramstyle: Optional[str] = None) -> None:
        self.paramstyle = paramstyle or self.default_paramstyle

    def __repr__(self) -> str:
        return f"{type(self).__name__}(paramstyle={self.paramstyle!r})"

    def bind_var(self, i: int) -> str:
        """Placeholder for the i-th (0-based) bound parameter."""
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle in ("format", "pyformat"):
            return "%s"
        if self.paramstyle == "numeric":
            return f":{i + 1}"
        if self.paramstyle == "numeric_dollar":
            return f"${i + 1}"
        raise ConfigurationError(f"Unsupported positional paramstyle {self.paramstyle!r}")

    @abstractmethod
    def quote_field(self, name: str) -> str:
        """Quote a table or column identifier."""
        ...

    @abstractmethod
    def to_sql_type(self, col: "ColumnMap") -> str:
        """SQL type name for a column, honouring max size and auto-increment."""
        ...

    @abstractmethod
    def auto_incr_str(self) -> str:
        """Column clause marking an auto-increment key ('' when the type implies it)."""
        ...

    def auto_incr_bind_value(self) -> str:
        """Literal bound to an auto-increment key in INSERT."""
        return "null"

    def auto_incr_insert_suffix(self, col: "ColumnMap") -> str:
        """Suffix appended to INSERT to return the generated key ('' for lastrowid)."""
        return ""

    def create_table_suffix(self) -> str:
        return ""

    def column_constraints(self, col: "ColumnMap") -> str:
        """Extra constraints appended to a column definition."""
        return ""

    def truncate_statements(self, table: "TableMap", restart_identity: bool) -> List[str]:
        return [f"truncate table {self.quote_field(table.table_name)}"]

    def insert_auto_incr(self, handle: "SqlHandle", query: str, args: Sequence[Any]) -> Any:
        """Run an INSERT and return the generated key."""
        return handle.execute(query, args).last_insert_id

    def to_db_value(self, col: "ColumnMap", value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, bytearray):
            return bytes(value)
        return value

    def from_db_value(self, col: "ColumnMap", value: Any) -> Any:
        if value is None:
            return None
        column_type = col.column_type
        if column_type is ColumnType.BOOL:
            return bool(value)
        if column_type is ColumnType.BYTES and isinstance(value, memoryview):
            return value.tobytes()
        if isinstance(col.python_type, type) and issubclass(col.python_type, enum.Enum):
            return col.python_type(value)
        return value
