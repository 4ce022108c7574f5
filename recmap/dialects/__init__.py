from .base import Dialect
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect
from .strategy import DialectName
from ..config import DbConfig


def make_dialect(config: DbConfig) -> Dialect:
    """Create the dialect strategy named by ``config.dialect``."""
    try:
        name = DialectName(config.dialect)
    except ValueError:
        raise ValueError(f"Unknown dialect: {config.dialect}") from None

    if name == DialectName.SQLITE:
        return SqliteDialect(paramstyle=config.paramstyle)

    if name == DialectName.POSTGRESQL:
        return PostgresDialect(paramstyle=config.paramstyle)

    if name == DialectName.MYSQL:
        return MySQLDialect(
            engine=config.mysql_engine,
            encoding=config.mysql_encoding,
            paramstyle=config.paramstyle,
        )

    raise ValueError(f"Unknown dialect: {config.dialect}")


__all__ = [
    "Dialect",
    "DialectName",
    "MySQLDialect",
    "PostgresDialect",
    "SqliteDialect",
    "make_dialect",
]
