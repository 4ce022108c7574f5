from .column import ColumnMap, column
from .table import TableMap, record_fields
from .types import ColumnType, Float32, Int8, Int16, Int32, Int64

__all__ = [
    "ColumnMap",
    "ColumnType",
    "TableMap",
    "column",
    "record_fields",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
]
