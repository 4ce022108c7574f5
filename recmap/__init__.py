from .config import DbConfig
from .db.dbmap import DbMap
from .db.handle import ExecResult
from .db.helpers import rebind
from .db.tx import Transaction
from .dialects import Dialect, MySQLDialect, PostgresDialect, SqliteDialect
from .errors import ConfigurationError, NoRowsError, OptimisticLockError, RecmapError
from .mapping import ColumnMap, TableMap, column

__all__ = [
    "DbMap",
    "Transaction",
    "DbConfig",
    "ExecResult",
    "Dialect",
    "SqliteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "ColumnMap",
    "TableMap",
    "column",
    "rebind",
    "RecmapError",
    "ConfigurationError",
    "NoRowsError",
    "OptimisticLockError",
]
