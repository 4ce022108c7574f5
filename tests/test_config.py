from __future__ import annotations

import logging

import pytest

from recmap import DbConfig, DbMap, SqliteDialect
from recmap.db.dbmap import TRACE_LOGGER_NAME


def test_dialect_inferred_from_url() -> None:
    assert DbConfig(url="sqlite://").dialect == "sqlite"
    assert DbConfig(url="postgresql+psycopg://u:p@h/db").dialect == "postgresql"
    assert DbConfig(url="mysql+pymysql://u:p@h/db").dialect == "mysql"


def test_explicit_dialect_wins() -> None:
    assert DbConfig(url="sqlite://", dialect="mysql").dialect == "mysql"


def test_empty_url_rejected() -> None:
    with pytest.raises(ValueError, match="url"):
        DbConfig(url="")


def test_unknown_paramstyle_rejected() -> None:
    with pytest.raises(ValueError, match="paramstyle"):
        DbConfig(url="sqlite://", paramstyle="named")


def test_from_config_builds_engine_and_dialect(tmp_path, caplog) -> None:
    caplog.set_level(logging.INFO, logger=TRACE_LOGGER_NAME)
    config = DbConfig(url=f"sqlite:///{tmp_path / 'cfg.db'}", trace=True, trace_prefix="cfg: ")

    dbmap = DbMap.from_config(config)
    try:
        assert isinstance(dbmap.dialect, SqliteDialect)
        dbmap.exec("create table t (id integer)")
    finally:
        dbmap.close()

    assert [r.getMessage() for r in caplog.records if r.name == TRACE_LOGGER_NAME] == [
        "cfg: create table t (id integer) []"
    ]
