from __future__ import annotations

import dataclasses
import functools
import logging
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..db.helpers import validate_identifier
from ..errors import ConfigurationError
from .column import IGNORED, ColumnMap
from .types import ColumnType, resolve_column_type, zero_value

logger = logging.getLogger(__name__)

_MISSING = dataclasses.MISSING


@dataclass(frozen=True)
class FieldSpec:
    """Introspected shape of one record attribute."""

    name: str
    column_name: Optional[str]  # None for ignored and private fields
    column_type: Optional[ColumnType]
    python_type: Optional[type]
    nullable: bool
    default: Callable[[], Any]


def _constant(value: Any) -> Callable[[], Any]:
    return lambda: value


@functools.lru_cache(maxsize=None)
def record_fields(record_type: type) -> Tuple[FieldSpec, ...]:
    """
    Introspect a record type once and cache the result.

    Dataclasses are read through :func:`dataclasses.fields`; plain classes
    through their annotated attributes (``ClassVar`` excluded). Private
    attributes (leading underscore) and ``column("-")`` fields are kept with
    ``column_name=None`` so that freshly built records still get their
    defaults.
    """
    if not isinstance(record_type, type):
        raise ConfigurationError(f"Record type must be a class, got {record_type!r}")

    try:
        hints = typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as exc:
        raise ConfigurationError(f"Cannot resolve annotations of {record_type.__name__}: {exc}") from exc

    specs: List[FieldSpec] = []
    if dataclasses.is_dataclass(record_type):
        if record_type.__dataclass_params__.frozen:
            raise ConfigurationError(f"{record_type.__name__} is frozen; records must be mutable")
        entries = [
            (f.name, f.metadata.get("db"), _dataclass_default(f))
            for f in dataclasses.fields(record_type)
        ]
    else:
        entries = [
            (name, None, _class_default(record_type, name))
            for name, hint in hints.items()
            if typing.get_origin(hint) is not typing.ClassVar and hint is not typing.ClassVar
        ]

    for name, tag, default in entries:
        if name.startswith("_") or tag == IGNORED:
            specs.append(FieldSpec(name, None, None, None, False, default or _constant(None)))
            continue
        where = f"{record_type.__name__}.{name}"
        python_type, column_type, nullable = resolve_column_type(hints[name], where)
        if default is None:
            default = _constant(zero_value(column_type, nullable))
        specs.append(
            FieldSpec(
                name=name,
                column_name=name.lower() if tag is None else tag,
                column_type=column_type,
                python_type=python_type,
                nullable=nullable,
                default=default,
            )
        )
    return tuple(specs)


def _dataclass_default(f: "dataclasses.Field[Any]") -> Optional[Callable[[], Any]]:
    if f.default is not _MISSING:
        return _constant(f.default)
    if f.default_factory is not _MISSING:
        return f.default_factory
    return None


def _class_default(record_type: type, name: str) -> Optional[Callable[[], Any]]:
    if hasattr(record_type, name):
        return _constant(getattr(record_type, name))
    return None


class TableMap:
    """
    Mapping of one record type onto one table.

    Built once per type by :meth:`recmap.DbMap.add_table`; all configuration
    calls mutate the shared instance until it is frozen.
    """

    def __init__(self, record_type: type, table_name: str) -> None:
        self.record_type = record_type
        self.table_name = validate_identifier(table_name, "table")
        self.columns: List[ColumnMap] = []
        self.keys: List[ColumnMap] = []
        self.version: Optional[ColumnMap] = None
        self._frozen = False
        self._fields = record_fields(record_type)

        for spec in self._fields:
            if spec.column_name is None:
                continue
            col = ColumnMap(
                table=self,
                field_name=spec.name,
                column_name=validate_identifier(spec.column_name, "column"),
                column_type=spec.column_type,
                python_type=spec.python_type,
                nullable=spec.nullable,
            )
            if any(c.column_name.lower() == col.column_name.lower() for c in self.columns):
                raise ConfigurationError(
                    f"Duplicate column {col.column_name!r} in {record_type.__name__}"
                )
            self.columns.append(col)
            if spec.name == "version" and col.column_type.is_integer:
                self.version = col

        logger.debug(
            "Mapped %s onto table %s (%d columns)",
            record_type.__name__,
            self.table_name,
            len(self.columns),
        )

    def __repr__(self) -> str:
        return f"TableMap({self.record_type.__name__} -> {self.table_name})"

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError(f"Table {self.table_name!r} is frozen and cannot be changed")

    def col_map(self, name: str) -> ColumnMap:
        """Find a column by field name or column name (case-insensitive)."""
        wanted = name.lower()
        for col in self.columns:
            if col.field_name.lower() == wanted or col.column_name.lower() == wanted:
                return col
        raise ConfigurationError(f"No column {name!r} in table {self.table_name!r}")

    def set_keys(self, is_auto_incr: bool, *names: str) -> "TableMap":
        """
        Designate the primary key columns, replacing any previous keys.

        Args:
            is_auto_incr: Whether the keys are generated by the database
            names: Field or column names of the key columns
        """
        self._check_mutable()
        if not names:
            raise ConfigurationError("set_keys() requires at least one column name")
        keys = [self.col_map(name) for name in names]
        for col in keys:
            if col.is_transient:
                raise ConfigurationError(f"Transient column {col.column_name!r} cannot be a key")
            if col.is_version:
                raise ConfigurationError(f"Version column {col.column_name!r} cannot be a key")
        for col in self.keys:
            col.is_pk = False
            col.is_auto_incr = False
        for col in keys:
            col.is_pk = True
            col.is_auto_incr = is_auto_incr
        self.keys = keys
        return self

    def set_version_col(self, name: str) -> ColumnMap:
        """Use ``name`` as the optimistic-locking version column."""
        self._check_mutable()
        col = self.col_map(name)
        if not col.column_type.is_integer:
            raise ConfigurationError(f"Version column {col.column_name!r} must be an integer")
        if col.is_transient or col.is_pk:
            raise ConfigurationError(f"Version column {col.column_name!r} cannot be transient or a key")
        self.version = col
        return col

    @property
    def persisted_columns(self) -> List[ColumnMap]:
        return [c for c in self.columns if not c.is_transient]

    @property
    def auto_incr_key(self) -> Optional[ColumnMap]:
        """The generated key column, when exactly one key is auto-increment."""
        auto = [c for c in self.keys if c.is_auto_incr]
        return auto[0] if len(auto) == 1 else None

    def columns_by_name(self) -> Dict[str, ColumnMap]:
        return {c.column_name.lower(): c for c in self.columns}

    def new_record(self) -> Any:
        """Build an instance with every field set to its default (or zero) value."""
        record = object.__new__(self.record_type)
        for spec in self._fields:
            setattr(record, spec.name, spec.default())
        return record
