from __future__ import annotations

import datetime
import enum
import types
import typing
from enum import Enum
from typing import Any, NewType, Optional, Tuple

from ..errors import ConfigurationError

# Width markers for annotations; a plain ``int`` is a 64-bit column and a plain
# ``float`` a double precision one.
Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)


class ColumnType(str, Enum):
    BOOL = "bool"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    TEXT = "text"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"

    @property
    def is_integer(self) -> bool:
        return self in (ColumnType.INT8, ColumnType.INT16, ColumnType.INT32, ColumnType.INT64)


_MARKERS = {
    Int8: (int, ColumnType.INT8),
    Int16: (int, ColumnType.INT16),
    Int32: (int, ColumnType.INT32),
    Int64: (int, ColumnType.INT64),
    Float32: (float, ColumnType.FLOAT32),
}

# Order matters: bool is a subclass of int.
_TYPE_TABLE: Tuple[Tuple[type, ColumnType], ...] = (
    (bool, ColumnType.BOOL),
    (int, ColumnType.INT64),
    (float, ColumnType.FLOAT64),
    (str, ColumnType.TEXT),
    (bytes, ColumnType.BYTES),
    (bytearray, ColumnType.BYTES),
    (datetime.datetime, ColumnType.TIMESTAMP),
)

_ZERO_VALUES = {
    ColumnType.BOOL: False,
    ColumnType.INT8: 0,
    ColumnType.INT16: 0,
    ColumnType.INT32: 0,
    ColumnType.INT64: 0,
    ColumnType.FLOAT32: 0.0,
    ColumnType.FLOAT64: 0.0,
    ColumnType.TEXT: "",
    ColumnType.BYTES: b"",
    ColumnType.TIMESTAMP: None,
}


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _unwrap_optional(typing.get_args(annotation)[0])
    if origin is typing.Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(annotation)) == 2:
            inner, _ = _unwrap_optional(args[0])
            return inner, True
    return annotation, False


def resolve_column_type(annotation: Any, where: str = "field") -> Tuple[type, ColumnType, bool]:
    """
    Map a field annotation onto ``(python_type, column_type, nullable)``.

    Raises:
        ConfigurationError: If the annotation has no column type.
    """
    annotation, nullable = _unwrap_optional(annotation)

    if annotation in _MARKERS:
        python_type, column_type = _MARKERS[annotation]
        return python_type, column_type, nullable

    if isinstance(annotation, type):
        for python_type, column_type in _TYPE_TABLE:
            if issubclass(annotation, python_type):
                # Enums keep their own class so values convert back on read.
                if issubclass(annotation, enum.Enum):
                    return annotation, column_type, nullable
                return python_type, column_type, nullable

    raise ConfigurationError(f"Unsupported type {annotation!r} for {where}")


def zero_value(column_type: ColumnType, nullable: bool) -> Optional[Any]:
    if nullable:
        return None
    return _ZERO_VALUES[column_type]
