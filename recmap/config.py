from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import make_url

_PARAMSTYLES = ("qmark", "format", "pyformat", "numeric", "numeric_dollar")


@dataclass
class DbConfig:
    url: str
    dialect: Optional[str] = None
    mysql_engine: str = "InnoDB"
    mysql_encoding: str = "UTF8"
    paramstyle: Optional[str] = None
    trace: bool = False
    trace_prefix: str = ""
    pool_pre_ping: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters and infer the dialect from the URL."""
        if not self.url:
            raise ValueError("url must not be empty")
        if self.dialect is None:
            self.dialect = make_url(self.url).get_backend_name()
        if self.paramstyle is not None and self.paramstyle not in _PARAMSTYLES:
            raise ValueError(
                f"paramstyle must be one of {', '.join(_PARAMSTYLES)}; got {self.paramstyle!r}"
            )
        if not self.mysql_engine:
            raise ValueError("mysql_engine must not be empty")
